"""
Booking controller - submit handlers for every intake screen
"""

import time
from typing import Awaitable, Callable, TypeVar
from fastapi import APIRouter, HTTPException, Depends
import logging

from ..models.booking import (
    BookingResponse,
    CasualtyIntakeRequest,
    DraftRequest,
    DraftView,
    OnCallRequest,
    OnCallResponse,
    OPDBookingRequest,
    PathologyOrderRequest,
)
from ..services.draft import IntakeDraft
from ..services.intake_service import IntakeService
from ...billing.services.charge_service import ChargeResolver
from ....core.dependencies import get_intake_service, get_charge_resolver
from ....core.errors import ValidationError, PartialWriteFailure
from ....core.metrics import booking_count, booking_duration


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])

GENERIC_FAILURE = "Failed to register booking. Please try again."

T = TypeVar("T")


async def _submit(label: str, submit: Callable[[], Awaitable[T]]) -> T:
    """Validation errors go back field by field; anything else is logged and reported generically"""
    start_time = time.time()
    try:
        result = await submit()
        booking_count.labels(ledger=label, status="success").inc()
        return result
    except ValidationError as e:
        booking_count.labels(ledger=label, status="invalid").inc()
        raise HTTPException(status_code=422, detail=e.errors)
    except PartialWriteFailure as e:
        booking_count.labels(ledger=label, status="partial").inc()
        logger.error(f"Partial write while booking {label} for {e.patient_id} (intent {e.intent_id}): {e}")
        raise HTTPException(status_code=500, detail=GENERIC_FAILURE)
    except Exception as e:
        booking_count.labels(ledger=label, status="error").inc()
        logger.error(f"Error booking {label}: {e}")
        raise HTTPException(status_code=500, detail=GENERIC_FAILURE)
    finally:
        booking_duration.labels(ledger=label).observe(time.time() - start_time)


@router.post("/opd", response_model=BookingResponse)
async def book_opd(
    booking: OPDBookingRequest,
    service: IntakeService = Depends(get_intake_service)
) -> BookingResponse:
    """
    Book an OPD visit

    Resolves or mints the UHID, writes both registries for new patients,
    prices the visit and appends the entry under patients/{uhid}/opd.
    """
    return await _submit("opd", lambda: service.book_opd(booking))


@router.post("/casualty", response_model=BookingResponse)
async def register_casualty(
    intake: CasualtyIntakeRequest,
    service: IntakeService = Depends(get_intake_service)
) -> BookingResponse:
    return await _submit("casualty", lambda: service.book_casualty(intake))


@router.post("/pathology", response_model=BookingResponse)
async def order_pathology(
    order: PathologyOrderRequest,
    service: IntakeService = Depends(get_intake_service)
) -> BookingResponse:
    return await _submit("pathology", lambda: service.book_pathology(order))


@router.post("/oncall", response_model=OnCallResponse)
async def book_oncall(
    appointment: OnCallRequest,
    service: IntakeService = Depends(get_intake_service)
) -> OnCallResponse:
    return await _submit("oncall", lambda: service.book_oncall(appointment))


@router.post("/draft", response_model=DraftView)
async def evaluate_draft(
    draft_request: DraftRequest,
    resolver: ChargeResolver = Depends(get_charge_resolver)
) -> DraftView:
    """Apply edits in order to a draft and return it with every derived field"""
    draft = IntakeDraft(resolver, draft_request.inputs)
    try:
        draft.apply((edit.field, edit.value) for edit in draft_request.edits)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)
    return draft.view()
