import random

import pytest
from fastapi.testclient import TestClient

from frontdesk.core.config import ApplicationConfig, IdentityConfig, DirectoryConfig
from frontdesk.registries import MemoryPrimaryRegistry, MemoryMirrorRegistry
from frontdesk.domains.billing.services.charge_service import ChargeResolver, DoctorDirectory
from frontdesk.domains.billing.repositories.doctor_repository import DoctorRepository
from frontdesk.domains.booking.services.intake_service import IntakeService
from frontdesk.domains.booking.services.ledger_service import AppointmentLedger
from frontdesk.domains.patient.services.directory_service import PatientDirectory
from frontdesk.domains.patient.services.identity_service import IdentityAllocator
from frontdesk.domains.patient.services.mirror_service import RegistryMirror
from frontdesk.main import FrontDeskServiceContext, create_app


DOCTORS = {
    "doc-rao": {
        "name": "Dr. Rao",
        "specialist": ["Cardiology"],
        "department": "OPD",
        "firstVisitCharge": 500,
        "followUpCharge": 300,
    },
    "doc-iyer": {
        "name": "Dr. Iyer",
        "specialist": ["Orthopaedics", "Cardiology"],
        "department": "OPD",
        "firstVisitCharge": 800,
        "followUpCharge": 400,
    },
}

PRIMARY_PATIENTS = {
    "ASHA000001": {
        "uhid": "ASHA000001",
        "name": "Asha Verma",
        "phone": "9876543210",
        "age": 34,
        "gender": "female",
        "address": "12 MG Road",
        "createdAt": "2024-01-01T00:00:00+00:00",
    },
    "PRIYA00001": {
        "uhid": "PRIYA00001",
        "name": "Priya Nair",
        "phone": "9123456780",
        "age": 28,
        "gender": "female",
    },
}

MIRROR_PATIENTS = {
    "ASHOK00001": {
        "name": "Ashok Kumar",
        "contact": "9988776655",
        "gender": "male",
        "dob": "1980-06-15",
        "patientId": "ASHOK00001",
        "hospitalName": "MEDFORD",
    },
}


@pytest.fixture
def app_config():
    config = ApplicationConfig(registry_backend="memory")
    config.redis.enabled = False
    config.directory.live_updates = False
    return config


@pytest.fixture
def primary():
    return MemoryPrimaryRegistry(patients=PRIMARY_PATIENTS, doctors=DOCTORS)


@pytest.fixture
def mirror():
    return MemoryMirrorRegistry(patients=MIRROR_PATIENTS)


@pytest.fixture
def identity_config():
    return IdentityConfig(length=10, max_attempts=5)


@pytest.fixture
def directory_config():
    return DirectoryConfig(min_fragment_length=2, result_limit=20, live_updates=False)


@pytest.fixture
async def directory(primary, mirror, directory_config):
    directory = PatientDirectory(primary, mirror, directory_config)
    await directory.refresh()
    return directory


@pytest.fixture
def identity(primary, identity_config):
    return IdentityAllocator(identity_config, registry=primary, rng=random.Random(7))


@pytest.fixture
def registry_mirror(primary, mirror):
    return RegistryMirror(primary, mirror, hospital_name="MEDFORD")


@pytest.fixture
async def doctors(primary):
    directory = DoctorDirectory(DoctorRepository(primary))
    await directory.refresh()
    return directory


@pytest.fixture
def resolver(doctors):
    return ChargeResolver(doctors)


@pytest.fixture
def ledger(primary):
    return AppointmentLedger(primary)


@pytest.fixture
def intake(directory, identity, registry_mirror, resolver, ledger):
    return IntakeService(directory, identity, registry_mirror, resolver, ledger)


@pytest.fixture
def patient_payload():
    return {
        "name": "Ravi Shankar",
        "phone": "9000000001",
        "age": 45,
        "gender": "male",
        "address": "4 Lake View",
    }


@pytest.fixture
def client(app_config, primary, mirror):
    context = FrontDeskServiceContext(app_config, primary=primary, mirror=mirror)
    with TestClient(create_app(context)) as test_client:
        yield test_client
