"""
Patient domain models
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, Union
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(value: str) -> str:
    first, *rest = value.split("_")
    return first + "".join(token.capitalize() for token in rest)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RegistryModel(BaseModel):
    """Base model for registry payloads, stored with camelCase keys"""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class RegistrySource(str, Enum):
    """Which registry a directory entry was read from"""
    PRIMARY = "primary"
    MIRROR = "mirror"


class PatientFields(RegistryModel):
    """Editable patient fields entered at the front desk"""
    name: str = ""
    phone: str = ""
    age: Optional[int] = Field(None, ge=0)
    dob: Optional[str] = None
    gender: str = ""
    address: str = ""
    referred_by: str = ""


class PrimaryRecord(RegistryModel):
    """Full patient projection stored at patients/{uhid} in the primary registry"""
    uhid: str
    name: str = ""
    phone: str = ""
    age: Optional[int] = None
    dob: Optional[str] = None
    gender: str = ""
    address: str = ""
    referred_by: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MirrorRecord(RegistryModel):
    """Reduced projection stored at patients/{uhid} in the mirror registry"""
    name: str = ""
    contact: str = ""
    gender: str = ""
    dob: str = ""
    patient_id: str
    hospital_name: str = ""


@dataclass(frozen=True)
class PrimaryEntry:
    """Directory entry sourced from the primary registry"""
    record: PrimaryRecord
    kind: RegistrySource = RegistrySource.PRIMARY

    @property
    def id(self) -> str:
        return self.record.uhid

    @property
    def name(self) -> str:
        return self.record.name or ""

    @property
    def phone(self) -> str:
        return self.record.phone or ""


@dataclass(frozen=True)
class MirrorEntry:
    """Directory entry sourced from the mirror registry"""
    record: MirrorRecord
    kind: RegistrySource = RegistrySource.MIRROR

    @property
    def id(self) -> str:
        return self.record.patient_id

    @property
    def name(self) -> str:
        return self.record.name or ""

    @property
    def phone(self) -> str:
        return self.record.contact or ""


DirectoryEntry = Union[PrimaryEntry, MirrorEntry]


def age_from_dob(dob: Optional[str], today: Optional[date] = None) -> int:
    """Year difference between dob and today, floored at zero"""
    if not dob:
        return 0
    try:
        born = datetime.fromisoformat(dob.replace("Z", "+00:00")).date()
    except ValueError:
        return 0
    today = today or date.today()
    return max(today.year - born.year, 0)


class PatientSuggestion(RegistryModel):
    """Suggestion row returned to the front desk"""
    id: str
    name: str
    phone: str = ""
    source: RegistrySource
    age: Optional[int] = None
    dob: Optional[str] = None
    gender: str = ""
    address: str = ""

    @classmethod
    def from_entry(cls, entry: DirectoryEntry) -> "PatientSuggestion":
        if isinstance(entry, PrimaryEntry):
            record = entry.record
            return cls(
                id=entry.id,
                name=entry.name,
                phone=entry.phone,
                source=entry.kind,
                age=record.age,
                dob=record.dob,
                gender=record.gender,
                address=record.address,
            )
        record = entry.record
        return cls(
            id=entry.id,
            name=entry.name,
            phone=entry.phone,
            source=entry.kind,
            age=age_from_dob(record.dob),
            dob=record.dob or None,
            gender=record.gender,
        )


class ReconcileResponse(RegistryModel):
    """Outcome of a reconciliation sweep"""
    replayed: int
    completed: int
    abandoned: int
    still_pending: int


class IntentStatus(str, Enum):
    """Progress of a new-patient dual write"""
    PENDING = "pending"
    PRIMARY_WRITTEN = "primary_written"
    COMPLETE = "complete"
    ABANDONED = "abandoned"


class UpsertResult(BaseModel):
    """What RegistryMirror wrote for one submission"""
    uhid: str
    is_new: bool
    primary_document: Dict[str, Any]
    mirror_document: Optional[Dict[str, Any]] = None
    intent_id: Optional[str] = None
