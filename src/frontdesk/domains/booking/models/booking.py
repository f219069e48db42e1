"""
Booking domain models - requests, ledger entries and draft state
"""

from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import Field, model_validator

from ...patient.models.patient import RegistryModel, PatientFields
from ...billing.models.billing import (
    Money,
    VisitType,
    PaymentMethod,
    PaymentBreakdown,
    ChargeQuote,
)


class Modality(str, Enum):
    """Category of a billable visit/order chosen at the desk"""
    CONSULTATION = "consultation"
    CASUALTY = "casualty"
    XRAY = "xray"
    PATHOLOGY = "pathology"


class LedgerModality(str, Enum):
    """Sub-collection under patients/{uhid} an entry is appended to"""
    OPD = "opd"
    CASUALTY = "casualty"
    PATHOLOGY = "pathology"
    IPD = "ipd"


class AppointmentType(str, Enum):
    VISIT_HOSPITAL = "visithospital"
    ONCALL = "oncall"


class TriageCategory(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BLACK = "black"


class ArrivalMode(str, Enum):
    AMBULANCE = "ambulance"
    WALKIN = "walkin"
    REFERRED = "referred"


class CaseType(str, Enum):
    RTA = "rta"
    PHYSICAL_ASSAULT = "physicalAssault"
    BURN = "burn"
    POISONING = "poisoning"
    SNAKE_BITE = "snakeBite"
    CARDIAC = "cardiac"
    FALL = "fall"
    OTHER = "other"


class CasualtyStatus(str, Enum):
    ACTIVE = "active"
    DECEASED = "deceased"


class PatientDetails(RegistryModel):
    """Patient block of every intake form"""
    name: str = ""
    phone: str = ""
    age: Optional[int] = None
    dob: Optional[str] = None
    gender: str = ""
    address: str = ""
    referred_by: str = ""
    # UHID of the confirmed suggestion, if the operator picked one
    selected_id: Optional[str] = None

    def to_fields(self) -> PatientFields:
        return PatientFields(
            name=self.name.strip(),
            phone=self.phone.strip(),
            age=self.age,
            dob=self.dob,
            gender=self.gender,
            address=self.address,
            referred_by=self.referred_by,
        )


class PaymentInput(RegistryModel):
    method: Optional[PaymentMethod] = None
    cash_amount: Optional[Money] = None
    online_amount: Optional[Money] = None


class VitalSigns(RegistryModel):
    blood_pressure: Optional[str] = None
    pulse: Optional[float] = None
    temperature: Optional[float] = None
    oxygen_saturation: Optional[float] = None
    respiratory_rate: Optional[float] = None
    gcs: Optional[int] = None


class OPDBookingRequest(RegistryModel):
    """OPD booking; the modality decides whether a doctor fee applies"""
    patient: PatientDetails
    date: str
    time: str
    modality: Modality = Modality.CONSULTATION
    service_name: str = ""
    specialist: Optional[str] = None
    doctor: Optional[str] = None
    visit_type: Optional[VisitType] = None
    study: Optional[str] = None
    # Operator-entered charge for modalities without a doctor fee
    amount: Optional[Money] = None
    payment: PaymentInput = Field(default_factory=PaymentInput)
    message: str = ""
    opd_type: str = "opd"
    entered_by: str = "unknown"


class CasualtyIntakeRequest(RegistryModel):
    patient: PatientDetails
    date: str
    time: str
    mode_of_arrival: ArrivalMode = ArrivalMode.WALKIN
    brought_by: str = ""
    referral_hospital: str = ""
    brought_dead: bool = False
    case_type: CaseType = CaseType.OTHER
    other_case_type: str = ""
    incident_description: str = ""
    is_mlc: bool = False
    mlc_number: str = ""
    police_informed: bool = False
    attending_doctor: str = ""
    triage_category: TriageCategory = TriageCategory.YELLOW
    vital_signs: VitalSigns = Field(default_factory=VitalSigns)
    amount: Optional[Money] = None
    payment: Optional[PaymentInput] = None
    message: str = ""
    entered_by: str = "unknown"


class PathologyOrderRequest(RegistryModel):
    patient: PatientDetails
    blood_test_name: str
    amount: Money
    payment_id: Optional[str] = None
    payment: Optional[PaymentInput] = None
    entered_by: str = "unknown"


class OnCallRequest(RegistryModel):
    """On-call appointment; no identity resolution and no payment"""
    name: str
    phone: str
    age: Optional[int] = None
    gender: str = ""
    date: str
    time: str
    doctor: Optional[str] = None
    service_name: str = ""
    referred_by: str = ""
    opd_type: str = "opd"
    entered_by: str = "unknown"


class AppointmentEntry(RegistryModel):
    """
    Append-only visit/order record stored at patients/{uhid}/{ledger}/{entryKey}.
    The patient block is a copy taken at booking time.
    """
    patient_id: str
    ledger: LedgerModality
    patient: Dict[str, Any]
    details: Dict[str, Any] = Field(default_factory=dict)
    payment: Optional[PaymentBreakdown] = None
    entered_by: str = "unknown"
    created_at: str

    def to_document(self) -> Dict[str, Any]:
        document = {
            "patientId": self.patient_id,
            "ledger": self.ledger.value,
            "patient": dict(self.patient),
            **self.details,
            "enteredBy": self.entered_by,
            "createdAt": self.created_at,
        }
        if self.payment is not None:
            document["payment"] = self.payment.to_document()
        return document


class BookingResponse(RegistryModel):
    uhid: str
    is_new: bool
    entry_id: str
    ledger: LedgerModality
    charge: Optional[ChargeQuote] = None
    payment: Optional[PaymentBreakdown] = None


class OnCallResponse(RegistryModel):
    entry_id: str


class DraftStage(str, Enum):
    """Where an OPD booking stands in its lifecycle"""
    IDLE = "Idle"
    SERVICE_SELECTED = "ServiceSelected"
    DOCTOR_SELECTED = "DoctorSelected"
    VISIT_TYPE_SELECTED = "VisitTypeSelected"
    PAYMENT_METHOD_CHOSEN = "PaymentMethodChosen"
    AMOUNT_ENTERED = "AmountEntered"
    DISCOUNT_COMPUTED = "DiscountComputed"
    SUBMITTED = "Submitted"


class DraftInputs(RegistryModel):
    """Operator inputs of a booking draft"""
    modality: Optional[Modality] = None
    specialist: Optional[str] = None
    doctor: Optional[str] = None
    visit_type: Optional[VisitType] = None
    study: Optional[str] = None
    amount: Optional[Money] = None
    payment_method: Optional[PaymentMethod] = None
    cash_amount: Optional[Money] = None
    online_amount: Optional[Money] = None
    brought_dead: bool = False
    triage_category: Optional[TriageCategory] = None

    @model_validator(mode="after")
    def _brought_dead_is_black(self) -> "DraftInputs":
        if self.brought_dead:
            self.triage_category = TriageCategory.BLACK
        return self


class DraftEdit(RegistryModel):
    field: str
    value: Any = None


class DraftRequest(RegistryModel):
    inputs: DraftInputs = Field(default_factory=DraftInputs)
    edits: List[DraftEdit] = Field(default_factory=list)


class DraftView(RegistryModel):
    """Inputs plus every derived field"""
    inputs: DraftInputs
    stage: DraftStage
    charge: Money
    payment: Optional[PaymentBreakdown] = None
    show_doctor_fields: bool
    show_study: bool
    errors: Dict[str, str] = Field(default_factory=dict)
