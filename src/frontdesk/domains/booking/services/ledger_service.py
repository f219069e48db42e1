"""
Appointment ledger service - append-only visit/order entries
"""

from typing import Optional, Dict, Any, Union
import logging

from ..models.booking import AppointmentEntry, LedgerModality
from ...billing.models.billing import PaymentBreakdown
from ...patient.models.patient import utcnow_iso
from ....core.errors import ValidationError
from ....registries import PrimaryRegistry


logger = logging.getLogger(__name__)


class AppointmentLedger:
    """Appends entries under patients/{uhid}/{ledger} and oncall/; never edits them"""

    def __init__(self, registry: PrimaryRegistry):
        self.registry = registry

    async def append(
        self,
        patient_id: str,
        modality: Union[LedgerModality, str],
        snapshot: Dict[str, Any],
        breakdown: Optional[PaymentBreakdown] = None,
        details: Optional[Dict[str, Any]] = None,
        entered_by: str = "unknown",
    ) -> str:
        """
        Append one entry and return its push-generated key

        Args:
            patient_id: Resolved UHID
            modality: Ledger the entry belongs to
            snapshot: Patient fields as they were at booking time
            breakdown: Payment split, when the entry is billable
            details: Modality-specific fields (doctor, study, triage, ...)
        """
        if not patient_id:
            raise ValidationError({"patientId": "A resolved patient id is required."})

        entry = AppointmentEntry(
            patient_id=patient_id,
            ledger=LedgerModality(modality),
            patient=dict(snapshot),
            details=dict(details or {}),
            payment=breakdown,
            entered_by=entered_by,
            created_at=utcnow_iso(),
        )
        entry_id = await self.registry.push_entry(patient_id, entry.ledger.value, entry.to_document())
        logger.info(f"Appended {entry.ledger.value} entry {entry_id} for patient {patient_id}")
        return entry_id

    async def append_oncall(self, fields: Dict[str, Any], entered_by: str = "unknown") -> str:
        document = {
            **fields,
            "appointmentType": "oncall",
            "enteredBy": entered_by,
            "createdAt": utcnow_iso(),
        }
        entry_id = await self.registry.push_oncall(document)
        logger.info(f"Appended on-call entry {entry_id}")
        return entry_id
