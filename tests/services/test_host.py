"""Tests for the simulated host."""

from __future__ import annotations

import pytest

from docwarden.domain.errors import AccessDenied
from docwarden.services.host import Host, SimulatedHost, UserContext


class TestRequirements:
    def test_channels(self, host: SimulatedHost) -> None:
        with pytest.raises(AccessDenied, match="missing channel access"):
            host.require_access(["edit"])
        SimulatedHost(UserContext(channels=("edit",))).require_access(["view", "edit"])

    def test_roles(self) -> None:
        with pytest.raises(AccessDenied, match="missing role"):
            SimulatedHost(UserContext(roles=("viewer",))).require_role(["admin"])
        SimulatedHost(UserContext(roles=("admin",))).require_role("admin")

    def test_users(self, host: SimulatedHost) -> None:
        host.require_user(["bob", "alice"])
        with pytest.raises(AccessDenied, match="wrong user"):
            host.require_user(["bob"])
        with pytest.raises(AccessDenied):
            SimulatedHost().require_user(["bob"])

    def test_empty_requirement_needs_admin(self, host: SimulatedHost, admin_host: SimulatedHost) -> None:
        with pytest.raises(AccessDenied):
            host.require_access([])
        admin_host.require_access([])
        admin_host.require_role([])
        admin_host.require_user([])


class TestGrants:
    def test_records_grants(self, host: SimulatedHost) -> None:
        host.channel(["a", "b"])
        host.channel("a")
        host.access(["bob"], "c")
        host.role("bob", ["role:x"])
        host.expiry(60)
        assert host.summary() == {
            "channels": ["a", "b"],
            "access": [{"users_and_roles": ["bob"], "channels": ["c"]}],
            "roles": [{"users": ["bob"], "roles": ["role:x"]}],
            "expiry": 60,
        }

    def test_satisfies_protocol(self, host: SimulatedHost) -> None:
        assert isinstance(host, Host)
