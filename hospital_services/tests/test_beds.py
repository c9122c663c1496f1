import re
from datetime import datetime, timedelta, timezone

import pytest

from hospital_services.services import common
from hospital_services.services.beds import BedService
from hospital_services.services.common import Outcome, uuid_display_id

pytestmark = pytest.mark.asyncio


@pytest.fixture
def clock(monkeypatch):
    """Controllable UTC clock for the services."""
    state = {"now": datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)}
    monkeypatch.setattr(common, "_utcnow", lambda: state["now"])
    return state


@pytest.fixture
def service(client, notifier):
    return BedService(client, notifier)


async def test_create_without_status_is_available_and_unassigned(service, client, clock):
    bed = await service.create({"ward": "ICU", "number": "12", "type": "Standard"})

    assert bed["status"] == "Available"
    assert bed["patientId"] is None
    assert bed["lastCleaned"] == "2024-05-01T08:00:00.000Z"
    assert re.fullmatch(r"B\d{3}", bed["id"])

    _, table, params = client.last_call("create_record")
    assert table == "bed_c"
    assert params["records"][0]["status_c"] == "Available"
    assert "Id" not in params["records"][0]


async def test_create_uses_injected_display_id(client, notifier):
    service = BedService(client, notifier, id_factory=lambda prefix: f"{prefix}-X")

    bed = await service.create({"ward": "ICU"})

    assert bed["id"] == "B-X"


async def test_create_falls_back_to_sent_values_when_backend_echoes_blanks(service, client):
    client.respond("create_record", {"success": True, "results": [{"success": True, "data": {"Id": 9}}]})

    bed = await service.create({"ward": "ICU", "number": "4"})

    assert bed["Id"] == 9
    assert bed["ward"] == "ICU"
    assert bed["number"] == "4"


async def test_assign_then_release(service, client, clock):
    bed_id = client.seed("bed_c", id_c="B001", ward_c="ICU", status_c="Available",
                         last_cleaned_c="2024-04-30T10:00:00.000Z")

    assigned = await service.assign_patient(bed_id, "P007")
    assert assigned["status"] == "Occupied"
    assert assigned["patientId"] == "P007"

    clock["now"] += timedelta(hours=2)
    released = await service.release_patient(str(bed_id))

    assert released["status"] == "Available"
    assert released["patientId"] is None
    assert released["lastCleaned"] > "2024-04-30T10:00:00.000Z"
    assert released["lastCleaned"] == "2024-05-01T10:00:00.000Z"


async def test_assign_sends_only_occupancy_fields(service, client):
    bed_id = client.seed("bed_c", ward_c="ICU")

    await service.assign_patient(bed_id, "P007")

    _, _, params = client.last_call("update_record")
    assert params == {"records": [{"Id": bed_id, "status_c": "Occupied", "patient_id_c": "P007"}]}


async def test_status_filters(service, client):
    client.seed("bed_c", ward_c="ICU", status_c="Available")
    client.seed("bed_c", ward_c="ICU", status_c="Occupied", patient_id_c="P001")
    client.seed("bed_c", ward_c="Maternity", status_c="Available")

    assert [b["ward"] for b in await service.get_available_beds()] == ["ICU", "Maternity"]
    assert [b["patientId"] for b in await service.get_occupied_beds()] == ["P001"]
    assert len(await service.get_by_ward("ICU")) == 2


async def test_release_unknown_bed_returns_none(service, notifier):
    assert await service.release_patient(404) is None
    assert notifier.messages == ["Record 404 not found"]


async def test_transport_errors_become_sentinels(service, client, notifier):
    client.respond("fetch_records", ConnectionError("timeout"))
    client.respond("update_record", ConnectionError("timeout"))
    client.respond("delete_record", ConnectionError("timeout"))

    assert await service.get_by_ward("ICU") == []
    assert await service.assign_patient(1, "P001") is None
    assert await service.delete(1) is False
    assert notifier.messages == []


async def test_non_numeric_id_is_rejected_without_a_remote_call(service, client):
    assert await service.get_by_id("abc") is None
    assert await service.assign_patient("abc", "P001") is None
    assert client.calls == []


async def test_uuid_display_ids(client, notifier):
    service = BedService(client, notifier, id_factory=uuid_display_id)

    first = await service.create({"ward": "ICU"})
    second = await service.create({"ward": "ICU"})

    assert re.fullmatch(r"B[0-9A-F]{8}", first["id"])
    assert first["id"] != second["id"]


async def test_missing_write_responses_become_sentinels(service, client, notifier, monkeypatch):
    async def no_reply(*args, **kwargs):
        return None

    for method in ("create_record", "update_record", "delete_record"):
        monkeypatch.setattr(client, method, no_reply)

    assert await service.create({"ward": "ICU"}) is None
    assert await service.assign_patient(1, "P001") is None
    assert await service.delete(1) is False
    assert notifier.messages == ["Failed to create bed", "Failed to assign patient to bed", "Failed to delete bed"]

    result = await service.update_result(1, {"ward": "ICU"})
    assert result.outcome is Outcome.REJECTED


async def test_non_envelope_fetch_response_is_rejected(service, client, monkeypatch):
    async def bare_list(*args, **kwargs):
        return [{"Id": 1}]

    monkeypatch.setattr(client, "fetch_records", bare_list)

    result = await service.get_available_beds_result()

    assert result.outcome is Outcome.REJECTED
    assert result.value == []
