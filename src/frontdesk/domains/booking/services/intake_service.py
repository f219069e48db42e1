"""
Intake service - the submit flow shared by every intake screen
"""

import re
from decimal import Decimal
from typing import Optional, Dict, Any, Tuple
import logging

from ..models.booking import (
    AppointmentType,
    BookingResponse,
    CasualtyIntakeRequest,
    CasualtyStatus,
    CaseType,
    LedgerModality,
    Modality,
    OnCallRequest,
    OnCallResponse,
    OPDBookingRequest,
    PathologyOrderRequest,
    PatientDetails,
    PaymentInput,
    TriageCategory,
)
from ..models.catalogues import match_pathology_study, match_xray_study
from .ledger_service import AppointmentLedger
from ...billing.models.billing import PaymentBreakdown, PaymentMethod, NO_DOCTOR_ID
from ...billing.services.charge_service import ChargeResolver
from ...billing.services.payment_service import PaymentAllocator
from ...patient.models.patient import RegistrySource, UpsertResult
from ...patient.services.directory_service import PatientDirectory
from ...patient.services.identity_service import IdentityAllocator
from ...patient.services.mirror_service import RegistryMirror
from ....core.errors import ValidationError


logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")


def validate_patient(patient: PatientDetails) -> Dict[str, str]:
    """Field errors for the patient block shared by every form"""
    errors = {}
    if not patient.name.strip():
        errors["name"] = "Name is required"
    if not PHONE_PATTERN.match(patient.phone.strip()):
        errors["phone"] = "Phone number must be 10 digits"
    if patient.age is None and not patient.dob:
        errors["age"] = "Age is required"
    elif patient.age is not None and patient.age < 0:
        errors["age"] = "Age must be positive"
    if not patient.gender:
        errors["gender"] = "Gender is required"
    return errors


class IntakeService:
    """
    Runs a submission end to end: validate, resolve the identity, write both
    registries, price the visit and append the ledger entry.

    Everything that can be rejected is checked before the first registry
    call, so a ValidationError never leaves a partial submission behind.
    """

    def __init__(
        self,
        directory: PatientDirectory,
        identity: IdentityAllocator,
        mirror: RegistryMirror,
        resolver: ChargeResolver,
        ledger: AppointmentLedger,
    ):
        self.directory = directory
        self.identity = identity
        self.mirror = mirror
        self.resolver = resolver
        self.ledger = ledger

    async def _register(self, patient: PatientDetails) -> UpsertResult:
        selected = None
        if patient.selected_id:
            matches = await self.directory.lookup(patient.selected_id)
            if not matches:
                logger.warning(f"Rejected unknown selected patient {patient.selected_id!r}")
                raise ValidationError({"selectedId": "Selected patient not found. Search and select again."})
            selected = matches[0]

        resolved = await self.identity.resolve(selected=selected)
        result = await self.mirror.upsert(resolved.uhid, patient.to_fields(), resolved.is_new)

        self.directory.apply_change(RegistrySource.PRIMARY, result.uhid, result.primary_document)
        if result.mirror_document is not None:
            self.directory.apply_change(RegistrySource.MIRROR, result.uhid, result.mirror_document)
        return result

    @staticmethod
    def _snapshot(patient: PatientDetails) -> Dict[str, Any]:
        return patient.to_fields().to_document()

    @staticmethod
    def _allocate(payment: PaymentInput, charge: Decimal) -> PaymentBreakdown:
        if payment.cash_amount is None and payment.online_amount is None:
            return PaymentAllocator.initial_split(payment.method, charge)
        return PaymentAllocator.compute(payment.method, payment.cash_amount, payment.online_amount, charge)

    async def book_opd(self, request: OPDBookingRequest) -> BookingResponse:
        errors = validate_patient(request.patient)
        if not request.service_name.strip():
            errors["serviceName"] = "Service name is required"
        if request.modality is Modality.CONSULTATION:
            if not request.doctor:
                errors["doctor"] = "Please select a doctor"
            if request.visit_type is None:
                errors["visitType"] = "Please select a visit type"
        if request.modality is Modality.XRAY and not match_xray_study(request.study):
            errors["study"] = "Please select a study"
        if request.modality is Modality.PATHOLOGY and not match_pathology_study(request.study):
            errors["study"] = "Please select a test"
        if request.payment.method is None:
            errors["paymentMethod"] = "Please select a payment method"
        if errors:
            raise ValidationError(errors)

        quote = self.resolver.quote(request.doctor, request.visit_type, request.modality)
        charge = self.resolver.base_charge(request.modality, request.doctor, request.visit_type, request.amount)
        breakdown = self._allocate(request.payment, charge)

        result = await self._register(request.patient)
        details = {
            "modality": request.modality.value,
            "serviceName": request.service_name,
            "specialist": request.specialist or "",
            "doctor": request.doctor or NO_DOCTOR_ID,
            "visitType": request.visit_type.value if request.visit_type else "",
            "study": request.study or "",
            "date": request.date,
            "time": request.time,
            "message": request.message,
            "referredBy": request.patient.referred_by,
            "appointmentType": AppointmentType.VISIT_HOSPITAL.value,
            "opdType": request.opd_type,
            "originalAmount": charge,
        }
        entry_id = await self.ledger.append(
            result.uhid,
            LedgerModality.OPD,
            self._snapshot(request.patient),
            breakdown,
            details,
            entered_by=request.entered_by,
        )
        return BookingResponse(
            uhid=result.uhid,
            is_new=result.is_new,
            entry_id=entry_id,
            ledger=LedgerModality.OPD,
            charge=quote if request.modality is Modality.CONSULTATION else None,
            payment=breakdown,
        )

    async def book_casualty(self, request: CasualtyIntakeRequest) -> BookingResponse:
        errors = validate_patient(request.patient)
        if request.case_type is CaseType.OTHER and not request.other_case_type.strip():
            errors["otherCaseType"] = "Please specify the case type"
        if request.is_mlc and not request.mlc_number.strip():
            errors["mlcNumber"] = "MLC number is required"
        if errors:
            raise ValidationError(errors)

        breakdown = None
        if request.payment is not None and request.payment.method is not None:
            charge = self.resolver.base_charge(Modality.CASUALTY, entered_amount=request.amount)
            breakdown = self._allocate(request.payment, charge)

        triage, status = self.casualty_outcome(request.brought_dead, request.triage_category)

        result = await self._register(request.patient)
        details = {
            "date": request.date,
            "time": request.time,
            "modeOfArrival": request.mode_of_arrival.value,
            "broughtBy": request.brought_by,
            "referralHospital": request.referral_hospital,
            "broughtDead": request.brought_dead,
            "caseType": request.case_type.value,
            "otherCaseType": request.other_case_type if request.case_type is CaseType.OTHER else "",
            "incidentDescription": request.incident_description,
            "isMLC": request.is_mlc,
            "mlcNumber": request.mlc_number if request.is_mlc else "",
            "policeInformed": request.police_informed,
            "attendingDoctor": request.attending_doctor,
            "triageCategory": triage.value,
            "vitalSigns": request.vital_signs.to_document(),
            "message": request.message,
            "status": status.value,
        }
        entry_id = await self.ledger.append(
            result.uhid,
            LedgerModality.CASUALTY,
            self._snapshot(request.patient),
            breakdown,
            details,
            entered_by=request.entered_by,
        )
        return BookingResponse(
            uhid=result.uhid,
            is_new=result.is_new,
            entry_id=entry_id,
            ledger=LedgerModality.CASUALTY,
            payment=breakdown,
        )

    @staticmethod
    def casualty_outcome(brought_dead: bool, triage: TriageCategory) -> Tuple[TriageCategory, CasualtyStatus]:
        if brought_dead:
            return TriageCategory.BLACK, CasualtyStatus.DECEASED
        return triage, CasualtyStatus.ACTIVE

    async def book_pathology(self, request: PathologyOrderRequest) -> BookingResponse:
        errors = validate_patient(request.patient)
        test_name = match_pathology_study(request.blood_test_name)
        if test_name is None:
            errors["bloodTestName"] = "Please select a test from the list"
        if request.amount < 0:
            errors["amount"] = "Must be >= 0"
        if errors:
            raise ValidationError(errors)

        amount = request.amount
        breakdown = self._allocate(request.payment or PaymentInput(method=PaymentMethod.CASH), amount)

        result = await self._register(request.patient)
        details = {
            "bloodTestName": test_name,
            "amount": amount,
            "paymentId": request.payment_id or None,
        }
        entry_id = await self.ledger.append(
            result.uhid,
            LedgerModality.PATHOLOGY,
            self._snapshot(request.patient),
            breakdown,
            details,
            entered_by=request.entered_by,
        )
        return BookingResponse(
            uhid=result.uhid,
            is_new=result.is_new,
            entry_id=entry_id,
            ledger=LedgerModality.PATHOLOGY,
            payment=breakdown,
        )

    async def book_oncall(self, request: OnCallRequest) -> OnCallResponse:
        errors = {}
        if not request.name.strip():
            errors["name"] = "Name is required"
        if not PHONE_PATTERN.match(request.phone.strip()):
            errors["phone"] = "Phone number must be 10 digits"
        if errors:
            raise ValidationError(errors)

        fields = {
            "name": request.name.strip(),
            "phone": request.phone.strip(),
            "age": request.age,
            "gender": request.gender,
            "date": request.date,
            "time": request.time,
            "doctor": request.doctor or NO_DOCTOR_ID,
            "serviceName": request.service_name,
            "referredBy": request.referred_by,
            "opdType": request.opd_type,
        }
        entry_id = await self.ledger.append_oncall(fields, entered_by=request.entered_by)
        return OnCallResponse(entry_id=entry_id)

