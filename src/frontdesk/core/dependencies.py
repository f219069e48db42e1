"""
Dependency injection for the application
"""

from fastapi import Request, Depends

# Domain services
from ..domains.patient.services.directory_service import PatientDirectory
from ..domains.patient.services.mirror_service import RegistryMirror
from ..domains.billing.services.charge_service import ChargeResolver, DoctorDirectory
from ..domains.booking.services.intake_service import IntakeService
from ..registries import PrimaryRegistry


async def get_service_context(request: Request):
    """Get the front desk service context"""
    return request.app.state.frontdesk


async def get_primary_registry(context=Depends(get_service_context)) -> PrimaryRegistry:
    return context.primary


# Service dependencies
async def get_patient_directory(context=Depends(get_service_context)) -> PatientDirectory:
    """Get the merged patient directory"""
    return context.directory


async def get_registry_mirror(context=Depends(get_service_context)) -> RegistryMirror:
    return context.registry_mirror


async def get_doctor_directory(context=Depends(get_service_context)) -> DoctorDirectory:
    return context.doctors


async def get_charge_resolver(context=Depends(get_service_context)) -> ChargeResolver:
    return context.charge_resolver


async def get_intake_service(context=Depends(get_service_context)) -> IntakeService:
    """Get the intake (submit flow) service"""
    return context.intake
