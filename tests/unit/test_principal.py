"""Unit tests for principal capabilities."""

from types import SimpleNamespace
from uuid import uuid4

from app.core.principal import Capability, Principal
from app.models.enums import UserRole


def test_user_role_has_no_admin_capability():
    user = SimpleNamespace(id=uuid4(), role=UserRole.USER)
    principal = Principal.from_user(user, ip_address="10.0.0.1")

    assert principal.id == user.id
    assert principal.is_admin is False
    assert principal.ip_address == "10.0.0.1"


def test_admin_role_has_admin_capability():
    principal = Principal.from_user(SimpleNamespace(id=uuid4(), role=UserRole.ADMIN))

    assert Capability.ADMIN in principal.capabilities
    assert principal.is_admin is True


def test_can_access_own_resources_only():
    principal = Principal(id=uuid4())

    assert principal.can_access(principal.id) is True
    assert principal.can_access(uuid4()) is False


def test_admin_can_access_everything():
    principal = Principal(id=uuid4(), capabilities=frozenset({Capability.ADMIN}))

    assert principal.can_access(uuid4()) is True
