import pytest

from wcpilot.core.exceptions import QuotaExceededError, ResourceNotFoundError, ValidationError
from wcpilot.services.billing_service import BillingService
from wcpilot.utils.time_utils import utc_now


@pytest.fixture
def billing(store):
    return BillingService(store)


@pytest.mark.asyncio
async def test_downgrade_blocked_while_over_new_limit(billing, store):
    store.add(user_id="user-a", plan="pro", instances=["a", "b", "c", "d", "e"])

    with pytest.raises(QuotaExceededError) as exc:
        await billing.change_plan("user-a", "basic")

    assert "You have 5 instances" in exc.value.message
    assert exc.value.details["currentInstances"] == 5
    assert store.plan_of("user-a") == "pro"


@pytest.mark.asyncio
async def test_upgrade_activates_new_period(billing, store):
    store.add(user_id="user-a", plan="free", instances=["a"])

    changed = await billing.change_plan("user-a", "pro")

    assert changed["plan"]["id"] == "pro"
    assert changed["status"] == "active"
    assert changed["currentPeriodEnd"] > utc_now()
    assert store.plan_of("user-a") == "pro"


@pytest.mark.asyncio
async def test_downgrade_allowed_when_usage_fits(billing, store):
    store.add(user_id="user-a", plan="pro", instances=["a", "b", "c"])

    await billing.change_plan("user-a", "basic")

    assert store.plan_of("user-a") == "basic"


@pytest.mark.asyncio
async def test_unknown_plan(billing, store):
    store.add(user_id="user-a")

    with pytest.raises(ValidationError):
        await billing.change_plan("user-a", "gold")


@pytest.mark.asyncio
async def test_missing_tenant(billing):
    with pytest.raises(ResourceNotFoundError):
        await billing.change_plan("ghost", "basic")
    with pytest.raises(ResourceNotFoundError):
        await billing.get_subscription("ghost")


@pytest.mark.asyncio
async def test_concurrent_growth_refuses_downgrade(billing, store):
    store.add(user_id="user-a", plan="pro", instances=["a", "b", "c"])
    original = store.update_subscription

    async def grow_then_update(user_id, *args):
        store.documents[user_id]["instances"].append("d")
        return await original(user_id, *args)

    store.update_subscription = grow_then_update

    with pytest.raises(QuotaExceededError):
        await billing.change_plan("user-a", "basic")
    assert store.plan_of("user-a") == "pro"


@pytest.mark.asyncio
async def test_subscription_usage(billing, store):
    store.add(user_id="user-a", plan="basic", instances=["a", "b"])

    subscription = await billing.get_subscription("user-a")

    assert subscription["plan"]["id"] == "basic"
    assert subscription["usage"] == {
        "instances": 2,
        "maxInstances": 3,
        "messagesThisMonth": 0,
        "maxMessagesPerMonth": 1000,
    }


def test_list_plans(billing):
    assert [p["id"] for p in billing.list_plans()] == ["free", "basic", "pro", "enterprise"]
