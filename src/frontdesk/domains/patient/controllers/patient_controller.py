"""
Patient controller - suggestion lookups and registry maintenance
"""

from typing import List, Optional, Dict, Any
from fastapi import APIRouter, HTTPException, Query, Path, Depends
import logging

from ..models.patient import PatientSuggestion, ReconcileResponse, RegistrySource
from ..services.directory_service import PatientDirectory, SEARCH_FIELDS
from ..services.mirror_service import RegistryMirror
from ....core.dependencies import get_patient_directory, get_registry_mirror, get_primary_registry
from ....core.errors import IntakeError
from ....registries import PrimaryRegistry


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/patients", tags=["patients"])


@router.get("/suggestions", response_model=List[PatientSuggestion])
async def suggest_patients(
    fragment: str = Query("", description="Text typed so far"),
    field: str = Query("name", description="'name' or 'phone'"),
    confirmed_id: Optional[str] = Query(None, description="UHID of the suggestion already confirmed"),
    confirmed_source: Optional[RegistrySource] = Query(None, description="Registry the confirmed suggestion came from"),
    directory: PatientDirectory = Depends(get_patient_directory)
) -> List[PatientSuggestion]:
    """
    Suggest existing identities from both registries

    Nothing is returned below two characters, or when the fragment is
    exactly the confirmed patient's own name/phone.
    """
    if field not in SEARCH_FIELDS:
        raise HTTPException(status_code=422, detail=f"field must be one of {', '.join(SEARCH_FIELDS)}")

    confirmed = None
    if confirmed_id:
        confirmed = directory.confirmed_entry(confirmed_id, fragment, field=field, source=confirmed_source)

    entries = directory.search(fragment, field=field, confirmed=confirmed)
    return [PatientSuggestion.from_entry(entry) for entry in entries]


@router.get("/{uhid}/prefill", response_model=PatientSuggestion)
async def get_selection_prefill(
    uhid: str = Path(..., description="UHID of the selected suggestion"),
    directory: PatientDirectory = Depends(get_patient_directory)
) -> PatientSuggestion:
    """Form fields a selected suggestion fills in; mirror entries derive age from dob"""
    matches = directory.find(uhid)
    if not matches:
        raise HTTPException(status_code=404, detail=f"Patient {uhid} not found")
    return PatientSuggestion.from_entry(matches[0])


@router.get("/{uhid}")
async def get_patient(
    uhid: str = Path(..., description="UHID"),
    registry: PrimaryRegistry = Depends(get_primary_registry)
) -> Dict[str, Any]:
    try:
        document = await registry.get_patient(uhid)
    except IntakeError as e:
        logger.error(f"Error fetching patient {uhid}: {e}")
        raise HTTPException(status_code=503, detail="Primary registry unavailable")

    if document is None:
        raise HTTPException(status_code=404, detail=f"Patient {uhid} not found")
    return document


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_registries(
    mirror: RegistryMirror = Depends(get_registry_mirror)
) -> ReconcileResponse:
    """Replay registrations whose mirror record never landed"""
    try:
        return await mirror.reconcile()
    except IntakeError as e:
        logger.error(f"Reconciliation failed: {e}")
        raise HTTPException(status_code=503, detail="Registry unavailable, try again later")
