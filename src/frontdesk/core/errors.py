"""
Error taxonomy for the intake core
"""

from typing import Dict, Optional


class IntakeError(Exception):
    """Base class for all intake errors"""


class ValidationError(IntakeError):
    """Required/pattern failure detected before any registry call"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class LookupFailure(IntakeError):
    """A referenced record (e.g. a doctor) does not exist"""


class TransportFailure(IntakeError):
    """Registry unreachable or a driver-level error"""


class PartialWriteFailure(IntakeError):
    """One projection of a dual write succeeded and the other did not"""

    def __init__(self, patient_id: str, failed_store: str, intent_id: Optional[str] = None, cause: Optional[BaseException] = None):
        self.patient_id = patient_id
        self.failed_store = failed_store
        self.intent_id = intent_id
        self.cause = cause
        super().__init__(f"{failed_store} write failed for patient {patient_id}: {cause}")


class IdentityExhausted(IntakeError):
    """No free UHID found within the configured number of attempts"""
