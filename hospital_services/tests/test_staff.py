import pytest

from hospital_services.services import Outcome, build_services
from hospital_services.services.staff import StaffService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(client, notifier):
    return StaffService(client, notifier)


@pytest.mark.parametrize("role, prefix", [("Doctor", "D"), ("Nurse", "N"), ("Admin", "A"), (None, "A")])
async def test_generated_id_prefix_follows_role(service, role, prefix):
    created = await service.create({"name": "Sam", "role": role})

    assert created["id"][0] == prefix
    assert len(created["id"]) == 4


@pytest.mark.parametrize("role", [["Doctor"], {"title": "Nurse"}, 7])
async def test_non_string_role_falls_back_to_default_prefix(service, role):
    created = await service.create({"name": "Sam", "role": role})

    assert created is not None
    assert created["id"][0] == "A"


async def test_filters(service, client):
    client.seed("staff_c", name_c="Dr. Who", role_c="Doctor", department_c="ER", shift_c="Night")
    client.seed("staff_c", name_c="Nurse Joy", role_c="Nurse", department_c="ER", shift_c="Day")
    client.seed("staff_c", name_c="Pat", role_c="Admin", department_c="Billing", shift_c="Day")

    assert [s["name"] for s in await service.get_by_department("ER")] == ["Dr. Who", "Nurse Joy"]
    assert [s["name"] for s in await service.get_by_role("Admin")] == ["Pat"]
    assert [s["name"] for s in await service.get_by_shift("Night")] == ["Dr. Who"]

    _, table, params = client.last_call("fetch_records")
    assert table == "staff_c"
    assert params["where"] == [{"FieldName": "shift_c", "Operator": "EqualTo", "Values": ["Night"]}]


async def test_create_with_field_errors_notifies_each(service, client, notifier):
    client.respond("create_record", {
        "success": True,
        "results": [{"success": False, "errors": [{"fieldLabel": "contact_c", "message": "invalid phone"}]}],
    })

    assert await service.create({"name": "Sam", "contact": "x"}) is None
    assert notifier.messages == ["contact_c: invalid phone"]


async def test_empty_table_lists_nothing(service):
    assert await service.get_all() == []


async def test_build_services_share_client_and_notifier(client, notifier):
    services = build_services(client, notifier)

    assert set(services) == {"appointments", "beds", "patients", "staff"}
    assert all(s.client is client and s.notifier is notifier for s in services.values())
    assert isinstance(services["staff"], StaffService)


async def test_filter_results_carry_the_outcome(service, client):
    client.respond("fetch_records", {"success": False, "message": "Permission denied"})
    rejected = await service.get_by_role_result("Nurse")

    client.respond("fetch_records", ConnectionError("reset"))
    unreachable = await service.get_by_shift_result("Day")

    assert (rejected.outcome, rejected.value, rejected.messages) == (Outcome.REJECTED, [], ["Permission denied"])
    assert unreachable.outcome is Outcome.TRANSPORT_ERROR
    assert await service.get_by_department("ER") == []
