"""
Billing domain models
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, List, Annotated

from pydantic import Field, PlainSerializer, field_validator

from ...patient.models.patient import RegistryModel


ZERO = Decimal("0")
NO_DOCTOR_ID = "no_doctor"

# Exact in Python and in the registries, a plain number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class VisitType(str, Enum):
    FIRST = "first"
    FOLLOWUP = "followup"


class PaymentMethod(str, Enum):
    CASH = "cash"
    ONLINE = "online"
    MIXED = "mixed"


class Doctor(RegistryModel):
    """doctors/{doctorId} in the primary registry; read-only here"""
    id: str
    name: str = ""
    specialist: List[str] = Field(default_factory=list)
    department: str = ""
    first_visit_charge: Money = ZERO
    follow_up_charge: Money = ZERO

    @field_validator("specialist", mode="before")
    @classmethod
    def _specialist_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        return list(value)

    @field_validator("first_visit_charge", "follow_up_charge", mode="before")
    @classmethod
    def _non_negative_charge(cls, value):
        if value in (None, ""):
            return ZERO
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"invalid charge {value!r}")
        if not value.is_finite():
            raise ValueError(f"invalid charge {value!r}")
        return value if value >= ZERO else ZERO


class ChargeQuote(RegistryModel):
    """Base amount owed for the current doctor + visit type"""
    base_charge: Money = ZERO
    doctor_id: Optional[str] = None
    visit_type: Optional[VisitType] = None
    resolved: bool = False


class PaymentBreakdown(RegistryModel):
    """Normalized payment split persisted with every billable entry"""
    method: PaymentMethod
    cash_amount: Money = ZERO
    online_amount: Money = ZERO
    discount: Money = ZERO
    final_amount: Money = ZERO

    @property
    def amount_collected(self) -> Decimal:
        return self.cash_amount + self.online_amount


class PaymentRequest(RegistryModel):
    """Inputs for a payment computation"""
    method: PaymentMethod
    cash_amount: Optional[Money] = None
    online_amount: Optional[Money] = None
    base_charge: Money = ZERO
