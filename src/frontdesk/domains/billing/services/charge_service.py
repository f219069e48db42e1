"""
Charge service - doctor directory and base-charge lookup
"""

from decimal import Decimal
from typing import Optional, Dict, List, Union
import logging

from ..models.billing import Doctor, ChargeQuote, VisitType, NO_DOCTOR_ID
from ..repositories.doctor_repository import DoctorRepository
from .payment_service import to_amount
from ...booking.models.booking import Modality
from ....core.errors import LookupFailure


logger = logging.getLogger(__name__)


class DoctorDirectory:
    """In-process copy of doctors/, refreshed from the repository"""

    def __init__(self, repository: Optional[DoctorRepository] = None, doctors: Optional[Dict[str, Doctor]] = None):
        self.repository = repository
        self._doctors: Dict[str, Doctor] = dict(doctors or {})

    async def refresh(self, use_cache: bool = True) -> int:
        if self.repository is None:
            return len(self._doctors)
        self._doctors = await self.repository.load_all(use_cache=use_cache)
        logger.info(f"Doctor directory loaded {len(self._doctors)} doctors")
        return len(self._doctors)

    def get(self, doctor_id: str) -> Doctor:
        try:
            return self._doctors[doctor_id]
        except KeyError:
            raise LookupFailure(f"Doctor {doctor_id} not found")

    def all(self) -> List[Doctor]:
        return sorted(self._doctors.values(), key=lambda d: d.name.lower())

    def by_specialist(self, specialist: Optional[str]) -> List[Doctor]:
        if not specialist:
            return self.all()
        return [d for d in self.all() if specialist in d.specialist]

    def specialists(self) -> List[str]:
        tags = {tag for doctor in self._doctors.values() for tag in doctor.specialist if tag}
        return sorted(tags)


class ChargeResolver:
    """
    Base charge for a doctor + visit type.

    Unknown doctors, the `no_doctor` pseudo-doctor, a missing visit type and
    modalities without a doctor fee all quote zero.
    """

    def __init__(self, directory: DoctorDirectory):
        self.directory = directory

    def quote(
        self,
        doctor_id: Optional[str],
        visit_type: Optional[Union[VisitType, str]],
        modality: Union[Modality, str] = Modality.CONSULTATION,
    ) -> ChargeQuote:
        visit_type = VisitType(visit_type) if visit_type else None
        unresolved = ChargeQuote(doctor_id=doctor_id, visit_type=visit_type)

        if Modality(modality) is not Modality.CONSULTATION:
            return unresolved
        if not doctor_id or doctor_id == NO_DOCTOR_ID or visit_type is None:
            return unresolved

        try:
            doctor = self.directory.get(doctor_id)
        except LookupFailure as e:
            logger.warning(f"{e}; quoting zero charge")
            return unresolved

        charge = doctor.first_visit_charge if visit_type is VisitType.FIRST else doctor.follow_up_charge
        return ChargeQuote(base_charge=charge, doctor_id=doctor_id, visit_type=visit_type, resolved=True)

    def base_charge(
        self,
        modality: Union[Modality, str],
        doctor_id: Optional[str] = None,
        visit_type: Optional[Union[VisitType, str]] = None,
        entered_amount: Optional[Decimal] = None,
    ) -> Decimal:
        """Doctor fee for consultations, the operator-entered amount otherwise"""
        if Modality(modality) is Modality.CONSULTATION:
            return self.quote(doctor_id, visit_type, modality).base_charge
        return to_amount(entered_amount, "amount")
