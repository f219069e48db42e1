import asyncio

import pytest

from frontdesk.core.config import DirectoryConfig
from frontdesk.domains.patient.models.patient import RegistrySource, PatientSuggestion
from frontdesk.domains.patient.services.directory_service import PatientDirectory


def names(entries):
    return [entry.name for entry in entries]


def test_single_character_returns_nothing(directory):
    assert directory.search("a") == []
    assert directory.search("") == []
    assert directory.search(None) == []


def test_two_characters_match_both_registries(directory):
    results = names(directory.search("as"))

    assert "Asha Verma" in results
    assert "Ashok Kumar" in results
    assert "Priya Nair" not in results


def test_match_is_case_insensitive(directory):
    assert set(names(directory.search("AS"))) == {"Asha Verma", "Ashok Kumar"}


def test_match_is_substring_not_prefix(directory):
    assert names(directory.search("kum")) == ["Ashok Kumar"]
    assert names(directory.search("nair")) == ["Priya Nair"]


def test_results_are_tagged_with_source(directory):
    by_name = {entry.name: entry for entry in directory.search("as")}

    assert by_name["Asha Verma"].kind is RegistrySource.PRIMARY
    assert by_name["Ashok Kumar"].kind is RegistrySource.MIRROR
    assert by_name["Ashok Kumar"].id == "ASHOK00001"


def test_phone_search_is_substring(directory):
    results = directory.search("76543", field="phone")

    assert [entry.id for entry in results] == ["ASHA000001"]


def test_phone_search_uses_mirror_contact(directory):
    assert [entry.id for entry in directory.search("99887", field="phone")] == ["ASHOK00001"]


def test_phone_search_has_the_same_floor(directory):
    assert directory.search("9", field="phone") == []


def test_confirmed_name_suppresses_suggestions(directory):
    confirmed = directory.find("ASHA000001")[0]

    assert directory.search("Asha Verma", confirmed=confirmed) == []
    assert names(directory.search("Asha", confirmed=confirmed)) == ["Asha Verma"]


def test_confirmed_phone_suppresses_suggestions(directory):
    confirmed = directory.find("ASHA000001")[0]

    assert directory.search("9876543210", field="phone", confirmed=confirmed) == []


def test_confirmed_mirror_name_suppresses_suggestions(directory):
    directory.apply_change(RegistrySource.MIRROR, "ASHA000001", {
        "name": "Asha V",
        "contact": "9876543210",
        "patientId": "ASHA000001",
        "hospitalName": "MEDFORD",
    })

    confirmed = directory.confirmed_entry("ASHA000001", "Asha V")

    assert confirmed.kind is RegistrySource.MIRROR
    assert directory.search("Asha V", confirmed=confirmed) == []


def test_confirmed_entry_by_source(directory):
    assert directory.confirmed_entry("ASHOK00001", source=RegistrySource.MIRROR).name == "Ashok Kumar"
    assert directory.confirmed_entry("ASHOK00001", source=RegistrySource.PRIMARY) is None
    assert directory.confirmed_entry("NOPE000000") is None


async def test_lookup_reads_through_on_projection_miss(directory, mirror):
    mirror.patients["MEENA00001"] = {"name": "Meena Das", "contact": "9011223344", "patientId": "MEENA00001"}

    assert directory.find("MEENA00001") == []
    assert [entry.kind for entry in await directory.lookup("MEENA00001")] == [RegistrySource.MIRROR]
    assert await directory.lookup("NOPE000000") == []


def test_same_person_in_both_registries_is_not_deduplicated(directory):
    directory.apply_change(RegistrySource.MIRROR, "ASHA000001", {
        "name": "Asha Verma",
        "contact": "9876543210",
        "gender": "female",
        "dob": "",
        "patientId": "ASHA000001",
        "hospitalName": "MEDFORD",
    })

    results = directory.search("asha v")

    assert [entry.id for entry in results] == ["ASHA000001", "ASHA000001"]
    assert {entry.kind for entry in results} == {RegistrySource.PRIMARY, RegistrySource.MIRROR}


def test_malformed_documents_are_skipped(directory):
    directory.apply_change(RegistrySource.PRIMARY, "BROKEN0001", {"name": ["not", "a", "name"]})

    assert directory.find("BROKEN0001") == []


def test_removed_node_leaves_projection(directory):
    directory.apply_change(RegistrySource.PRIMARY, "PRIYA00001", None)

    assert directory.search("priya") == []


def test_unknown_field_is_rejected(directory):
    with pytest.raises(ValueError):
        directory.search("as", field="email")


def test_result_limit(directory):
    directory.config.result_limit = 1

    assert len(directory.search("as")) == 1


def test_mirror_suggestion_derives_age_from_dob(directory):
    entry = directory.find("ASHOK00001")[0]

    suggestion = PatientSuggestion.from_entry(entry)

    assert suggestion.source is RegistrySource.MIRROR
    assert suggestion.phone == "9988776655"
    assert suggestion.age >= 40


async def test_live_updates_follow_registry_writes(directory, mirror):
    await directory.start_live()
    try:
        await asyncio.sleep(0)
        await mirror.set_patient("MEENA00001", {
            "name": "Meena Das",
            "contact": "9011223344",
            "gender": "female",
            "dob": "",
            "patientId": "MEENA00001",
            "hospitalName": "MEDFORD",
        })
        for _ in range(5):
            await asyncio.sleep(0)

        assert names(directory.search("meena")) == ["Meena Das"]
    finally:
        await directory.stop_live()


async def test_live_updates_restart_after_stream_failure(primary, mirror):
    directory = PatientDirectory(primary, mirror, DirectoryConfig(live_updates=True, watch_retry_seconds=0))
    await directory.refresh()
    mirror.fail_on.add("watch_patients")

    await directory.start_live()
    try:
        for _ in range(5):
            await asyncio.sleep(0)

        status = directory.live_status()
        assert status["status"] == "degraded"
        assert status["primary"] == "following"
        assert status["mirror"].startswith("restarting")

        # written while the mirror stream was down
        mirror.patients["MEENA00001"] = {"name": "Meena Das", "contact": "9011223344", "patientId": "MEENA00001"}
        mirror.fail_on.clear()
        for _ in range(5):
            await asyncio.sleep(0)

        assert directory.live_status() == {"status": "healthy", "primary": "following", "mirror": "following"}
        assert names(directory.search("meena")) == ["Meena Das"]
    finally:
        await directory.stop_live()

    assert directory.live_status() == {"status": "disabled"}
