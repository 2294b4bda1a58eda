"""
Shared fixtures: in-memory tenant store, scripted provider, recording sockets.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from wcpilot.models.tenant import Tenant
from wcpilot.services.event_relay import EventRelay
from wcpilot.services.evolution_service import ProviderResult
from wcpilot.utils.time_utils import calculate_period_end, utc_now


def make_document(
    user_id: str = "user-a",
    plan: str = "free",
    instances: Optional[List[str]] = None,
    provider_api_key: Optional[str] = "tenant-key",
    email: Optional[str] = None,
    message_usage: Optional[Dict[str, int]] = None,
) -> Dict[str, Any]:
    now = utc_now()
    return {
        "user_id": user_id,
        "email": email or f"{user_id}@example.com",
        "credential_hash": "",
        "first_name": "Test",
        "last_name": "User",
        "role": "user",
        "subscription": {
            "plan": plan,
            "status": "active",
            "current_period_end": calculate_period_end(30, now),
        },
        "provider_api_key": provider_api_key,
        "instances": list(instances or []),
        "message_usage": dict(message_usage or {}),
        "created_at": now,
        "updated_at": now,
    }


class FakeTenantStore:
    """
    Dict-backed stand-in for TenantStore with the same conditional semantics.
    """

    def __init__(self):
        self.documents: Dict[str, Dict[str, Any]] = {}

    def add(self, **kwargs) -> Tenant:
        document = make_document(**kwargs)
        self.documents[document["user_id"]] = document
        return Tenant.from_document(document)

    def instances_of(self, user_id: str) -> List[str]:
        return list(self.documents[user_id]["instances"])

    def plan_of(self, user_id: str) -> str:
        return self.documents[user_id]["subscription"]["plan"]

    async def create_tenant(self, email, credential_hash, first_name, last_name) -> Tenant:
        from wcpilot.core.exceptions import ConflictError

        if any(d["email"] == email.lower() for d in self.documents.values()):
            raise ConflictError("User already exists with this email")
        user_id = f"user-{len(self.documents) + 1}"
        document = make_document(user_id=user_id, email=email.lower(), provider_api_key=None)
        document.update(credential_hash=credential_hash, first_name=first_name, last_name=last_name)
        self.documents[user_id] = document
        return Tenant.from_document(document)

    async def get_by_id(self, user_id: str) -> Optional[Tenant]:
        document = self.documents.get(user_id)
        return Tenant.from_document(copy.deepcopy(document)) if document else None

    async def get_by_email(self, email: str) -> Optional[Tenant]:
        for document in self.documents.values():
            if document["email"] == email.strip().lower():
                return Tenant.from_document(copy.deepcopy(document))
        return None

    async def add_instance(self, user_id, instance_name, max_instances) -> bool:
        document = self.documents.get(user_id)
        if document is None or instance_name in document["instances"]:
            return False
        if len(document["instances"]) >= max_instances:
            return False
        document["instances"].append(instance_name)
        return True

    async def remove_instance(self, user_id, instance_name) -> bool:
        document = self.documents.get(user_id)
        if document is None or instance_name not in document["instances"]:
            return False
        document["instances"].remove(instance_name)
        return True

    async def update_subscription(self, user_id, plan, status, current_period_end, max_instances):
        document = self.documents.get(user_id)
        if document is None or len(document["instances"]) > max_instances:
            return None
        document["subscription"] = {
            "plan": plan,
            "status": status,
            "current_period_end": current_period_end,
        }
        return Tenant.from_document(copy.deepcopy(document))

    async def update_profile(self, user_id, fields):
        document = self.documents.get(user_id)
        if document is None:
            return None
        document.update(fields)
        return Tenant.from_document(copy.deepcopy(document))

    async def increment_message_usage(self, user_id, period) -> int:
        usage = self.documents[user_id]["message_usage"]
        usage[period] = usage.get(period, 0) + 1
        return usage[period]


class FakeProvider:
    """
    Records calls and returns scripted ProviderResults.

    `results[method]` is either one ProviderResult or a list consumed in order.
    Unscripted calls succeed with `{"ok": True}`.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.results: Dict[str, Any] = {}
        self.api_keys: List[Optional[str]] = []

    def script(self, method: str, *results: ProviderResult):
        self.results[method] = list(results) if len(results) > 1 else results[0]

    def for_tenant(self, api_key):
        self.api_keys.append(api_key)
        return self

    def method_calls(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    def _result(self, method: str) -> ProviderResult:
        scripted = self.results.get(method)
        if isinstance(scripted, list):
            return scripted.pop(0) if scripted else ProviderResult(success=True, data={"ok": True})
        return scripted or ProviderResult(success=True, data={"ok": True})

    def __getattr__(self, method: str):
        if method.startswith("_"):
            raise AttributeError(method)

        async def call(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self._result(method)

        return call


class RecordingSocket:
    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


class StalledSocket:
    """Accepts the send and never completes it."""

    async def send_json(self, data):
        await asyncio.sleep(3600)


def ok(data=None) -> ProviderResult:
    return ProviderResult(success=True, data=data)


def failed(error: str) -> ProviderResult:
    return ProviderResult(success=False, error=error)


@pytest.fixture
def store():
    return FakeTenantStore()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def relay():
    return EventRelay()


@pytest_asyncio.fixture
async def socket(relay):
    connection = RecordingSocket()
    await relay.register("user-a", connection)
    return connection
