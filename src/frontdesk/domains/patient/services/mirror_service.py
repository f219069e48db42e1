"""
Registry mirror service - keeps the primary record and the mirror record in step
"""

from typing import Optional, Dict, Any
import logging

from ..models.patient import (
    PatientFields,
    PrimaryRecord,
    MirrorRecord,
    UpsertResult,
    ReconcileResponse,
    IntentStatus,
    utcnow_iso,
)
from ....core.errors import IntakeError, PartialWriteFailure
from ....core.metrics import partial_writes
from ....registries import PrimaryRegistry, MirrorRegistry, new_push_key


logger = logging.getLogger(__name__)


class RegistryMirror:
    """
    Writes patient identities to both registries.

    New identities go through a registration intent stored in the primary
    registry: the intent is written first, then the primary record, then the
    mirror record, and the intent is marked complete only after both landed.
    Existing identities only get a partial merge into the primary record; the
    mirror is never touched for them.
    """

    def __init__(self, primary: PrimaryRegistry, mirror: MirrorRegistry, hospital_name: str):
        self.primary = primary
        self.mirror = mirror
        self.hospital_name = hospital_name

    def build_primary_record(self, uhid: str, fields: PatientFields) -> PrimaryRecord:
        now = utcnow_iso()
        return PrimaryRecord(
            uhid=uhid,
            **fields.model_dump(),
            created_at=now,
            updated_at=now,
        )

    def build_mirror_record(self, uhid: str, fields: PatientFields) -> MirrorRecord:
        return MirrorRecord(
            name=fields.name,
            contact=fields.phone,
            gender=fields.gender,
            dob=fields.dob or "",
            patient_id=uhid,
            hospital_name=self.hospital_name,
        )

    async def upsert(self, uhid: str, fields: PatientFields, is_new: bool) -> UpsertResult:
        if is_new:
            return await self._create(uhid, fields)
        return await self._merge(uhid, fields)

    async def _create(self, uhid: str, fields: PatientFields) -> UpsertResult:
        primary_document = self.build_primary_record(uhid, fields).to_document()
        mirror_document = self.build_mirror_record(uhid, fields).to_document()
        intent_id = new_push_key()

        await self.primary.put_intent(intent_id, {
            "uhid": uhid,
            "primary": primary_document,
            "mirror": mirror_document,
            "status": IntentStatus.PENDING.value,
            "createdAt": utcnow_iso(),
        })

        try:
            await self.primary.set_patient(uhid, primary_document)
        except IntakeError:
            await self._mark(intent_id, IntentStatus.ABANDONED, "primary write failed")
            raise
        await self._mark(intent_id, IntentStatus.PRIMARY_WRITTEN)

        try:
            await self.mirror.set_patient(uhid, mirror_document)
        except IntakeError as e:
            partial_writes.inc()
            logger.error(f"Mirror write failed for new patient {uhid}, intent {intent_id} left for reconciliation: {e}")
            raise PartialWriteFailure(uhid, "mirror", intent_id, e) from e
        await self._mark(intent_id, IntentStatus.COMPLETE)

        logger.info(f"Registered new patient {uhid} in primary and mirror registries")
        return UpsertResult(
            uhid=uhid,
            is_new=True,
            primary_document=primary_document,
            mirror_document=mirror_document,
            intent_id=intent_id,
        )

    async def _merge(self, uhid: str, fields: PatientFields) -> UpsertResult:
        updates = {**fields.to_document(), "updatedAt": utcnow_iso()}
        if await self.primary.update_patient(uhid, updates):
            logger.info(f"Updated existing patient {uhid}")
            document = await self.primary.get_patient(uhid) or {**updates, "uhid": uhid}
            return UpsertResult(uhid=uhid, is_new=False, primary_document=document)

        # Confirmed from the mirror but never registered in the primary store
        document = self.build_primary_record(uhid, fields).to_document()
        await self.primary.set_patient(uhid, document)
        logger.info(f"Adopted mirror-only patient {uhid} into the primary registry")
        return UpsertResult(uhid=uhid, is_new=False, primary_document=document)

    async def _mark(self, intent_id: str, status: IntentStatus, error: Optional[str] = None) -> None:
        try:
            await self.primary.set_intent_status(intent_id, status.value, error)
        except IntakeError as e:
            # reconcile() re-derives progress from the records themselves
            logger.warning(f"Could not mark intent {intent_id} as {status.value}: {e}")

    async def reconcile(self) -> ReconcileResponse:
        """Replay every new-patient intent that did not reach both registries"""
        intents = (
            await self.primary.list_intents(IntentStatus.PENDING.value)
            + await self.primary.list_intents(IntentStatus.PRIMARY_WRITTEN.value)
        )

        completed = abandoned = still_pending = 0
        for intent in intents:
            outcome = await self._replay(intent)
            if outcome is IntentStatus.COMPLETE:
                completed += 1
            elif outcome is IntentStatus.ABANDONED:
                abandoned += 1
            else:
                still_pending += 1

        logger.info(
            f"Reconciliation replayed {len(intents)} intents: "
            f"{completed} completed, {abandoned} abandoned, {still_pending} pending"
        )
        return ReconcileResponse(
            replayed=len(intents),
            completed=completed,
            abandoned=abandoned,
            still_pending=still_pending,
        )

    async def _replay(self, intent: Dict[str, Any]) -> Optional[IntentStatus]:
        intent_id = intent["intentId"]
        uhid = intent["uhid"]
        try:
            if intent["status"] == IntentStatus.PENDING.value:
                if not await self.primary.patient_exists(uhid):
                    await self.primary.set_intent_status(intent_id, IntentStatus.ABANDONED.value, "primary record missing")
                    return IntentStatus.ABANDONED
            await self.mirror.set_patient(uhid, intent["mirror"])
            await self.primary.set_intent_status(intent_id, IntentStatus.COMPLETE.value)
            logger.info(f"Reconciled mirror record for patient {uhid}")
            return IntentStatus.COMPLETE
        except IntakeError as e:
            logger.warning(f"Intent {intent_id} for patient {uhid} still pending: {e}")
            return None
