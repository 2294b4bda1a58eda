import asyncio

import pytest

from conftest import StalledSocket, failed, ok
from wcpilot.services.event_relay import EventRelay
from wcpilot.core.exceptions import (
    AccessDeniedError,
    ProviderError,
    QuotaExceededError,
    ResourceNotFoundError,
    ValidationError,
)
from wcpilot.services.instance_service import InstanceService


@pytest.fixture
def service(store, provider, relay):
    return InstanceService(store, provider, relay)


@pytest.mark.asyncio
async def test_free_plan_allows_exactly_one_instance(service, store, provider, socket):
    store.add(user_id="user-a", plan="free")

    created = await service.create_instance("user-a", "bot1")
    assert created["instanceName"] == "bot1"
    assert created["integration"] == "WHATSAPP-BAILEYS"
    assert created["status"] == "created"

    with pytest.raises(QuotaExceededError) as exc:
        await service.create_instance("user-a", "bot2")

    assert exc.value.message == "Instance limit reached for free plan. Maximum: 1"
    assert exc.value.details == {"plan": "free", "maxInstances": 1}
    assert store.instances_of("user-a") == ["bot1"]
    # quota denial happens before any provider call
    assert len(provider.method_calls("create_instance")) == 1
    assert [e["type"] for e in socket.sent] == ["instance-created"]


@pytest.mark.asyncio
async def test_failed_provider_create_leaves_set_unchanged(service, store, provider, socket):
    store.add(user_id="user-a", plan="basic")
    provider.script("create_instance", failed('This name "bot1" is already in use.'))

    with pytest.raises(ProviderError) as exc:
        await service.create_instance("user-a", "bot1")

    assert exc.value.message == 'This name "bot1" is already in use.'
    assert exc.value.status_code == 502
    assert store.instances_of("user-a") == []
    assert socket.sent == []


@pytest.mark.asyncio
async def test_name_taken_at_provider_fails_every_time(service, store, provider):
    store.add(user_id="user-a", plan="basic")
    provider.script("create_instance", failed("This name is already in use"))

    for _ in range(2):
        with pytest.raises(ProviderError):
            await service.create_instance("user-a", "dup")

    assert store.instances_of("user-a") == []
    assert len(provider.method_calls("create_instance")) == 2


@pytest.mark.asyncio
async def test_retry_after_failed_create_adds_name_once(service, store, provider):
    store.add(user_id="user-a", plan="basic")
    provider.script("create_instance", failed("Internal Server Error"), ok({"instance": {"status": "created"}}))

    with pytest.raises(ProviderError):
        await service.create_instance("user-a", "bot1")
    await service.create_instance("user-a", "bot1")

    assert store.instances_of("user-a") == ["bot1"]
    assert len(provider.method_calls("create_instance")) == 2


@pytest.mark.asyncio
async def test_name_already_owned_is_rejected(service, store, provider):
    store.add(user_id="user-a", plan="pro", instances=["bot1"])

    with pytest.raises(ValidationError):
        await service.create_instance("user-a", "bot1")
    assert provider.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "ab", "has space", "x" * 51, "bad!name", "bot1\n"])
async def test_invalid_names_fail_before_any_io(service, store, provider, name):
    with pytest.raises(ValidationError):
        await service.create_instance("missing-user", name)
    assert provider.calls == []


@pytest.mark.asyncio
async def test_missing_tenant_is_not_found(service, provider):
    with pytest.raises(ResourceNotFoundError):
        await service.create_instance("ghost", "bot1")
    with pytest.raises(ResourceNotFoundError):
        await service.delete_instance("ghost", "bot1")
    assert provider.calls == []


@pytest.mark.asyncio
async def test_refused_append_deletes_remote_instance(service, store, provider, socket):
    store.add(user_id="user-a", plan="basic")

    # another writer fills the plan between the check and the append
    async def fill_then_refuse(*args, **kwargs):
        store.documents["user-a"]["instances"] = ["x1", "x2", "x3"]
        return False

    store.add_instance = fill_then_refuse

    with pytest.raises(QuotaExceededError):
        await service.create_instance("user-a", "bot4")

    deletes = provider.method_calls("delete_instance")
    assert [call[1] for call in deletes] == [("bot4",)]
    assert "bot4" not in store.instances_of("user-a")
    assert socket.sent == []


@pytest.mark.asyncio
async def test_concurrent_creates_never_exceed_plan(service, store, provider):
    store.add(user_id="user-a", plan="free")

    results = await asyncio.gather(
        service.create_instance("user-a", "bot1"),
        service.create_instance("user-a", "bot2"),
        return_exceptions=True,
    )

    assert sum(1 for r in results if isinstance(r, dict)) == 1
    assert sum(1 for r in results if isinstance(r, QuotaExceededError)) == 1
    assert len(store.instances_of("user-a")) == 1


@pytest.mark.asyncio
async def test_unowned_instance_access_is_denied(service, store, provider, socket):
    store.add(user_id="user-a", plan="basic", instances=["mine"])
    store.add(user_id="user-b", plan="basic", instances=["theirs"])

    with pytest.raises(AccessDeniedError):
        await service.delete_instance("user-a", "theirs")
    with pytest.raises(AccessDeniedError):
        await service.get_instance("user-a", "theirs")
    with pytest.raises(AccessDeniedError):
        await service.get_pairing_code("user-a", "nonexistent")

    assert provider.calls == []
    assert store.instances_of("user-b") == ["theirs"]
    assert socket.sent == []


@pytest.mark.asyncio
async def test_delete_removes_name_and_notifies(service, store, provider, socket):
    store.add(user_id="user-a", plan="basic", instances=["bot1", "bot2"])

    deleted = await service.delete_instance("user-a", "bot1")

    assert deleted == {"instanceName": "bot1", "status": "deleted"}
    assert store.instances_of("user-a") == ["bot2"]
    assert socket.sent == [{"type": "instance-deleted", "instanceName": "bot1", "status": "deleted"}]


@pytest.mark.asyncio
async def test_failed_provider_delete_keeps_name(service, store, provider, socket):
    store.add(user_id="user-a", plan="basic", instances=["bot1"])
    provider.script("delete_instance", failed("Instance not found"))

    with pytest.raises(ProviderError):
        await service.delete_instance("user-a", "bot1")

    assert store.instances_of("user-a") == ["bot1"]
    assert socket.sent == []


@pytest.mark.asyncio
async def test_list_omits_instances_that_fail(service, store, provider):
    store.add(user_id="user-a", plan="pro", instances=["up", "down", "also-up"])
    provider.script(
        "get_instance",
        ok({"instance": {"state": "open"}}),
        failed("Instance not found"),
        ok({"instance": {"state": "connecting"}}),
    )

    listed = await service.list_instances("user-a")

    assert [i["name"] for i in listed] == ["up", "also-up"]
    assert listed[0]["instance"] == {"state": "open"}


@pytest.mark.asyncio
async def test_pairing_code_is_returned_unchanged(service, store, provider):
    store.add(user_id="user-a", plan="free", instances=["bot1"])
    payload = {"pairingCode": "ABCD-1234", "code": "2@xyz", "count": 1}
    provider.script("get_pairing_code", ok(payload))

    assert await service.get_pairing_code("user-a", "bot1") == payload


@pytest.mark.asyncio
async def test_partial_update_reports_each_field(service, store, provider, socket):
    store.add(user_id="user-a", plan="basic", instances=["bot1"])
    provider.script("update_profile_picture", failed("Invalid image"))

    outcome = await service.update_instance(
        "user-a", "bot1", profile_name="Support", profile_picture_url="https://cdn.test/p.png"
    )

    assert not outcome.success
    assert [(r["type"], r["success"]) for r in outcome.results] == [
        ("profileName", True),
        ("profilePicture", False),
    ]
    assert outcome.failed[0]["error"] == "Invalid image"
    # the successful name change is not rolled back
    assert len(provider.method_calls("update_profile_name")) == 1
    assert socket.sent == []


@pytest.mark.asyncio
async def test_full_update_notifies(service, store, provider, socket):
    store.add(user_id="user-a", plan="basic", instances=["bot1"])

    outcome = await service.update_instance("user-a", "bot1", profile_name="Support")

    assert outcome.success
    assert socket.sent == [{
        "type": "instance-updated",
        "instanceName": "bot1",
        "updates": [{"type": "profileName", "success": True}],
    }]


@pytest.mark.asyncio
async def test_update_requires_a_field(service, store, provider):
    store.add(user_id="user-a", plan="basic", instances=["bot1"])

    with pytest.raises(ValidationError):
        await service.update_instance("user-a", "bot1")
    with pytest.raises(ValidationError):
        await service.update_instance("user-a", "bot1", profile_picture_url="not a url")
    assert provider.calls == []


@pytest.mark.asyncio
async def test_tenant_key_is_used_for_provider_calls(service, store, provider):
    store.add(user_id="user-a", plan="free", provider_api_key="key-a")

    await service.create_instance("user-a", "bot1")

    assert provider.api_keys == ["key-a"]


@pytest.mark.asyncio
async def test_stalled_session_does_not_block_create(store, provider):
    relay = EventRelay(send_timeout=0.05)
    await relay.register("user-a", StalledSocket())
    service = InstanceService(store, provider, relay)
    store.add(user_id="user-a", plan="basic")

    created = await asyncio.wait_for(service.create_instance("user-a", "bot1"), 1)

    assert created["status"] == "created"
    assert store.instances_of("user-a") == ["bot1"]
    assert await relay.connection_count("user-a") == 0


@pytest.mark.asyncio
async def test_user_locks_are_released_after_use(service, store, provider):
    store.add(user_id="user-a", plan="basic")

    await asyncio.gather(
        service.create_instance("user-a", "bot1"),
        service.create_instance("user-a", "bot2"),
    )
    await service.delete_instance("user-a", "bot1")
    with pytest.raises(ResourceNotFoundError):
        await service.create_instance("ghost", "bot1")

    assert service._locks == {}
    assert service._lock_users == {}
