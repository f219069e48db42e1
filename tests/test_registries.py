"""
Registry backend tests: factory, interface compliance and the in-memory stores
"""

import asyncio
import inspect
from decimal import Decimal

import pytest
from bson.decimal128 import Decimal128

from frontdesk.core.config import ApplicationConfig
from frontdesk.core.database import DecimalCodec
from frontdesk.core.errors import TransportFailure
from frontdesk.registries import (
    REGISTRY_BACKENDS,
    PrimaryRegistry,
    MirrorRegistry,
    MemoryPrimaryRegistry,
    MemoryMirrorRegistry,
    MongoPrimaryRegistry,
    MongoMirrorRegistry,
    create_registries,
    new_push_key,
)
from frontdesk.registries.mongo import _strip_id


def test_backends_registered():
    assert set(REGISTRY_BACKENDS) == {"mongo", "memory"}


@pytest.mark.parametrize("backend", ["memory", "MEMORY"])
def test_create_memory_registries(backend):
    primary, mirror = create_registries(backend, ApplicationConfig(registry_backend="memory"))

    assert isinstance(primary, MemoryPrimaryRegistry)
    assert isinstance(mirror, MemoryMirrorRegistry)


def test_create_mongo_registries_without_connecting():
    config = ApplicationConfig(registry_backend="mongo")

    primary, mirror = create_registries("mongo", config)

    assert isinstance(primary, MongoPrimaryRegistry)
    assert isinstance(mirror, MongoMirrorRegistry)
    assert primary.db_manager is not mirror.db_manager
    assert mirror.config.hospital_name == config.mirror.hospital_name


def test_unknown_backend():
    with pytest.raises(ValueError, match="Unknown registry backend"):
        create_registries("firebase", ApplicationConfig(registry_backend="memory"))


@pytest.mark.parametrize("primary_class, mirror_class", list(REGISTRY_BACKENDS.values()))
def test_interface_compliance(primary_class, mirror_class):
    assert issubclass(primary_class, PrimaryRegistry)
    assert issubclass(mirror_class, MirrorRegistry)
    assert not inspect.isabstract(primary_class)
    assert not inspect.isabstract(mirror_class)


def test_push_keys_are_unique():
    keys = {new_push_key() for _ in range(1000)}

    assert len(keys) == 1000


def test_decimal_codec_is_exact():
    codec = DecimalCodec()

    stored = codec.transform_python(Decimal("0.1"))

    assert isinstance(stored, Decimal128)
    assert codec.transform_bson(stored) == Decimal("0.1")


def test_strip_id():
    assert _strip_id({"_id": "ASHA000001", "name": "Asha"}) == {"name": "Asha"}
    assert _strip_id(None) is None


async def test_memory_documents_are_copies():
    registry = MemoryPrimaryRegistry()
    document = {"name": "Asha"}

    await registry.set_patient("ASHA000001", document)
    document["name"] = "changed"
    fetched = await registry.get_patient("ASHA000001")
    fetched["name"] = "changed again"

    assert (await registry.get_patient("ASHA000001"))["name"] == "Asha"


async def test_update_patient_without_upsert():
    registry = MemoryPrimaryRegistry()

    assert await registry.update_patient("NOPE000000", {"name": "x"}) is False
    assert await registry.update_patient("NOPE000000", {"name": "x"}, upsert=True) is True
    assert await registry.patient_exists("NOPE000000")


async def test_update_patient_keeps_visit_collections(primary):
    entry_id = await primary.push_entry("ASHA000001", "opd", {"doctor": "doc-rao"})

    await primary.update_patient("ASHA000001", {"phone": "9000000000"})

    assert entry_id in primary.patients["ASHA000001"]["opd"]


async def test_intent_lifecycle(primary):
    await primary.put_intent("i-1", {"uhid": "X", "status": "pending"})
    await primary.set_intent_status("i-1", "complete")

    assert await primary.list_intents("pending") == []
    assert [i["intentId"] for i in await primary.list_intents("complete")] == ["i-1"]


async def test_fault_injection(mirror):
    mirror.fail_on.add("list_patients")

    with pytest.raises(TransportFailure):
        await mirror.list_patients()


async def test_watch_yields_changes_and_removals(mirror):
    changes = mirror.watch_patients()
    pending = asyncio.ensure_future(changes.__anext__())
    await asyncio.sleep(0)

    await mirror.set_patient("NEW0000001", {"name": "New", "patientId": "NEW0000001"})
    key, document = await asyncio.wait_for(pending, timeout=1)

    assert key == "NEW0000001"
    assert document["name"] == "New"
    await changes.aclose()


async def test_health(primary, mirror):
    assert (await primary.health_check())["status"] == "healthy"
    assert (await mirror.health_check())["patients"] == 1
