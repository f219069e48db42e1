"""
Intake draft - booking inputs with their derived fields kept current
"""

from decimal import Decimal
from typing import Optional, Dict, Any, Iterable, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError

from ..models.booking import (
    DraftInputs,
    DraftStage,
    DraftView,
    Modality,
)
from ...billing.models.billing import PaymentBreakdown, VisitType, ZERO
from ...billing.services.charge_service import ChargeResolver
from ...billing.services.payment_service import PaymentAllocator
from ....core.errors import ValidationError


logger = logging.getLogger(__name__)

# Inputs cleared when the keyed input changes
RESETS: Dict[str, Tuple[str, ...]] = {
    "modality": ("specialist", "doctor", "visit_type", "study"),
    "specialist": ("doctor", "visit_type"),
}

STUDY_MODALITIES = (Modality.XRAY, Modality.PATHOLOGY)


class IntakeDraft:
    """
    Holds what the operator has entered so far for one booking.

    Inputs change only through `set()`, which applies the reset rules for
    that input. The charge and the payment split are pure functions of the
    inputs and are recomputed on every read.
    """

    def __init__(self, resolver: ChargeResolver, inputs: Optional[DraftInputs] = None):
        self.resolver = resolver
        self.inputs = inputs or DraftInputs()
        self.submitted = False

    def _field_name(self, field: str) -> str:
        if field in DraftInputs.model_fields:
            return field
        for name, info in DraftInputs.model_fields.items():
            if info.alias == field:
                return name
        raise ValidationError({field: "Unknown draft field."})

    def set(self, field: str, value: Any) -> None:
        name = self._field_name(field)
        previous = getattr(self.inputs, name)
        try:
            updated = DraftInputs.model_validate({**self.inputs.model_dump(), name: value})
        except PydanticValidationError as e:
            raise ValidationError({field: e.errors()[0]["msg"]})

        current = getattr(updated, name)
        if current == previous:
            return

        changes = {}
        for cleared in RESETS.get(name, ()):
            changes[cleared] = None
        if name == "doctor":
            changes["visit_type"] = VisitType.FIRST if current else None

        self.inputs = updated.model_copy(update=changes)
        self.submitted = False
        logger.debug(f"Draft {name} changed, reset {sorted(changes)}")

    def apply(self, edits: Iterable[Tuple[str, Any]]) -> None:
        for field, value in edits:
            self.set(field, value)

    def mark_submitted(self) -> None:
        self.submitted = True

    @property
    def charge(self) -> Decimal:
        if self.inputs.modality is None:
            return ZERO
        return self.resolver.base_charge(
            self.inputs.modality,
            doctor_id=self.inputs.doctor,
            visit_type=self.inputs.visit_type,
            entered_amount=self.inputs.amount,
        )

    @property
    def amounts_entered(self) -> bool:
        return self.inputs.cash_amount is not None or self.inputs.online_amount is not None

    @property
    def breakdown(self) -> Optional[PaymentBreakdown]:
        if self.inputs.payment_method is None or not self.amounts_entered:
            return None
        return PaymentAllocator.compute(
            self.inputs.payment_method,
            self.inputs.cash_amount,
            self.inputs.online_amount,
            self.charge,
        )

    @property
    def stage(self) -> DraftStage:
        inputs = self.inputs
        if self.submitted:
            return DraftStage.SUBMITTED
        if inputs.modality is None:
            return DraftStage.IDLE
        if inputs.modality is Modality.CONSULTATION:
            if not inputs.doctor:
                return DraftStage.SERVICE_SELECTED
            if inputs.visit_type is None:
                return DraftStage.DOCTOR_SELECTED
            if inputs.payment_method is None:
                return DraftStage.VISIT_TYPE_SELECTED
        elif inputs.payment_method is None:
            return DraftStage.SERVICE_SELECTED
        if not self.amounts_entered:
            return DraftStage.PAYMENT_METHOD_CHOSEN
        _, breakdown, errors = self._derive()
        if errors or breakdown is None:
            return DraftStage.AMOUNT_ENTERED
        return DraftStage.DISCOUNT_COMPUTED

    def _derive(self) -> Tuple[Decimal, Optional[PaymentBreakdown], Dict[str, str]]:
        try:
            return self.charge, self.breakdown, {}
        except ValidationError as e:
            return ZERO, None, e.errors

    def view(self) -> DraftView:
        charge, breakdown, errors = self._derive()
        return DraftView(
            inputs=self.inputs,
            stage=self.stage,
            charge=charge,
            payment=breakdown,
            show_doctor_fields=self.inputs.modality is Modality.CONSULTATION,
            show_study=self.inputs.modality in STUDY_MODALITIES,
            errors=errors,
        )
