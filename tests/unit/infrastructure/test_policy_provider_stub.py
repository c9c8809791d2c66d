"""Unit tests for InMemorySchedulingPolicyProvider."""

from __future__ import annotations

from pathlib import Path
from uuid import UUID, uuid4

import pytest

from clinic_queue.application.ports.policy_provider import (
    SchedulingPolicyProviderProtocol,
)
from clinic_queue.config import DEFAULT_SCHEDULING_POLICY, SchedulingPolicy
from clinic_queue.domain.models.daily_schedule import QueueMode
from clinic_queue.infrastructure.stubs import InMemorySchedulingPolicyProvider


class TestInMemorySchedulingPolicyProvider:
    def test_implements_protocol(self) -> None:
        assert isinstance(
            InMemorySchedulingPolicyProvider(), SchedulingPolicyProviderProtocol
        )

    @pytest.mark.asyncio
    async def test_default_for_unknown_clinic(self, clinic_id: UUID) -> None:
        provider = InMemorySchedulingPolicyProvider()
        assert await provider.get_policy(clinic_id) == DEFAULT_SCHEDULING_POLICY

    @pytest.mark.asyncio
    async def test_set_and_clear(self, clinic_id: UUID) -> None:
        provider = InMemorySchedulingPolicyProvider()
        slotted = SchedulingPolicy(mode=QueueMode.SLOTTED)
        provider.set_policy(clinic_id, slotted)
        assert await provider.get_policy(clinic_id) == slotted
        provider.clear()
        assert await provider.get_policy(clinic_id) == DEFAULT_SCHEDULING_POLICY

    @pytest.mark.asyncio
    async def test_from_yaml(self, tmp_path: Path) -> None:
        clinic_id = uuid4()
        policy_file = tmp_path / "policies.yaml"
        policy_file.write_text(
            "default:\n"
            "  default_grace_period_minutes: 10\n"
            "clinics:\n"
            f"  {clinic_id}:\n"
            "    mode: fixed\n"
            "    early_call_window_minutes: 30\n"
            "    timezone: Europe/Berlin\n"
        )

        provider = InMemorySchedulingPolicyProvider.from_yaml(policy_file)

        clinic_policy = await provider.get_policy(clinic_id)
        assert clinic_policy.mode is QueueMode.SLOTTED
        assert clinic_policy.early_call_window_minutes == 30
        assert clinic_policy.timezone == "Europe/Berlin"
        fallback = await provider.get_policy(uuid4())
        assert fallback.default_grace_period_minutes == 10
        assert fallback.mode is QueueMode.FLOW

    def test_from_empty_yaml(self, tmp_path: Path) -> None:
        policy_file = tmp_path / "empty.yaml"
        policy_file.write_text("")
        provider = InMemorySchedulingPolicyProvider.from_yaml(policy_file)
        assert isinstance(provider, InMemorySchedulingPolicyProvider)

    def test_from_yaml_rejects_bad_clinic_key(self, tmp_path: Path) -> None:
        policy_file = tmp_path / "bad.yaml"
        policy_file.write_text("clinics:\n  front-desk:\n    mode: flow\n")
        with pytest.raises(ValueError):
            InMemorySchedulingPolicyProvider.from_yaml(policy_file)

    def test_from_yaml_rejects_invalid_policy(self, tmp_path: Path) -> None:
        policy_file = tmp_path / "invalid.yaml"
        policy_file.write_text("default:\n  max_claim_attempts: 0\n")
        with pytest.raises(ValueError, match="max_claim_attempts"):
            InMemorySchedulingPolicyProvider.from_yaml(policy_file)
