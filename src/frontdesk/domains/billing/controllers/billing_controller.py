"""
Billing controller - doctor directory, charge quotes and payment splits
"""

from typing import List, Optional
from fastapi import APIRouter, HTTPException, Query, Depends
import logging

from ..models.billing import Doctor, ChargeQuote, VisitType, PaymentBreakdown, PaymentRequest
from ..services.charge_service import ChargeResolver, DoctorDirectory
from ..services.payment_service import PaymentAllocator
from ....core.dependencies import get_doctor_directory, get_charge_resolver
from ....core.errors import IntakeError, ValidationError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/billing", tags=["billing"])


@router.get("/doctors", response_model=List[Doctor])
async def list_doctors(
    specialist: Optional[str] = Query(None, description="Only doctors carrying this specialist tag"),
    doctors: DoctorDirectory = Depends(get_doctor_directory)
) -> List[Doctor]:
    return doctors.by_specialist(specialist)


@router.post("/doctors/refresh")
async def refresh_doctors(doctors: DoctorDirectory = Depends(get_doctor_directory)):
    """Reload the doctor directory from the primary registry, bypassing the cache"""
    try:
        count = await doctors.refresh(use_cache=False)
        return {"doctors": count}
    except IntakeError as e:
        logger.error(f"Error refreshing doctor directory: {e}")
        raise HTTPException(status_code=503, detail="Primary registry unavailable")


@router.get("/specialists", response_model=List[str])
async def list_specialists(doctors: DoctorDirectory = Depends(get_doctor_directory)) -> List[str]:
    return doctors.specialists()


@router.get("/quote", response_model=ChargeQuote)
async def quote_charge(
    doctor_id: Optional[str] = Query(None, description="Doctor id"),
    visit_type: Optional[VisitType] = Query(None, description="'first' or 'followup'"),
    resolver: ChargeResolver = Depends(get_charge_resolver)
) -> ChargeQuote:
    """Base charge for a doctor + visit type; unknown doctors quote zero"""
    return resolver.quote(doctor_id, visit_type)


@router.post("/payment", response_model=PaymentBreakdown)
async def compute_payment(payment_request: PaymentRequest) -> PaymentBreakdown:
    """Normalized split and derived discount for the entered amounts"""
    try:
        return PaymentAllocator.compute(
            payment_request.method,
            payment_request.cash_amount,
            payment_request.online_amount,
            payment_request.base_charge,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors)
