import pytest

from wcpilot.core.exceptions import ValidationError
from wcpilot.services import quota_policy
from wcpilot.services.quota_policy import (
    check_instance_quota,
    check_downgrade,
    check_message_quota,
    max_instances,
)


@pytest.mark.parametrize("plan, limit", [("free", 1), ("basic", 3), ("pro", 10), ("enterprise", 50)])
def test_plan_instance_limits(plan, limit):
    assert max_instances(plan) == limit
    assert check_instance_quota(plan, limit - 1).allowed
    assert not check_instance_quota(plan, limit).allowed


def test_free_plan_denial_reason():
    decision = check_instance_quota("free", 1)
    assert not decision.allowed
    assert decision.reason == "Instance limit reached for free plan. Maximum: 1"


def test_unknown_plan_is_a_validation_error():
    with pytest.raises(ValidationError) as exc:
        check_instance_quota("platinum", 0)
    assert exc.value.message == "Invalid subscription plan"


def test_downgrade_allowed_when_usage_fits():
    assert check_downgrade("basic", 3).allowed
    assert check_downgrade("free", 0).allowed


def test_downgrade_blocked_when_usage_exceeds_new_limit():
    decision = check_downgrade("basic", 5)
    assert not decision.allowed
    assert "You have 5 instances" in decision.reason
    assert "allows only 3" in decision.reason


def test_message_quota():
    assert check_message_quota("free", 99).allowed
    decision = check_message_quota("free", 100)
    assert not decision.allowed
    assert decision.reason == "Monthly message limit reached for free plan. Maximum: 100"


def test_decisions_are_deterministic():
    assert check_instance_quota("pro", 4) == check_instance_quota("pro", 4)


def test_list_plans_returns_copies():
    plans = quota_policy.list_plans()
    assert [p["id"] for p in plans] == ["free", "basic", "pro", "enterprise"]
    plans[0]["max_instances"] = 999
    assert max_instances("free") == 1
