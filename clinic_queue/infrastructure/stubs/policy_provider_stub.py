"""In-memory scheduling policy provider.

Holds one SchedulingPolicy per clinic plus a default for clinics without
one. Policies can be loaded from a YAML file of the form:

    default:
      mode: flow
      default_grace_period_minutes: 15
    clinics:
      6f1c...-uuid:
        mode: fixed          # legacy name, normalized to slotted
        early_call_window_minutes: 30
        timezone: Europe/Berlin
"""

from __future__ import annotations

from pathlib import Path
from uuid import UUID

import yaml
from structlog import get_logger

from clinic_queue.application.ports.policy_provider import (
    SchedulingPolicyProviderProtocol,
)
from clinic_queue.config.scheduling_policy import (
    DEFAULT_SCHEDULING_POLICY,
    SchedulingPolicy,
)

logger = get_logger(__name__)


class InMemorySchedulingPolicyProvider(SchedulingPolicyProviderProtocol):
    """Per-clinic policies kept in a dict."""

    def __init__(
        self,
        policies: dict[UUID, SchedulingPolicy] | None = None,
        default: SchedulingPolicy = DEFAULT_SCHEDULING_POLICY,
    ) -> None:
        self._policies: dict[UUID, SchedulingPolicy] = dict(policies or {})
        self._default = default

    @classmethod
    def from_yaml(cls, path: Path | str) -> InMemorySchedulingPolicyProvider:
        """Load policies from a YAML file.

        Args:
            path: YAML file with optional "default" and "clinics" sections.

        Returns:
            Provider holding the loaded policies.

        Raises:
            ValueError: If a clinic key is not a UUID or a policy is invalid.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        default = SchedulingPolicy.from_dict(data.get("default") or {})
        policies: dict[UUID, SchedulingPolicy] = {}
        for clinic_key, policy_data in (data.get("clinics") or {}).items():
            policies[UUID(str(clinic_key))] = SchedulingPolicy.from_dict(
                policy_data or {}
            )

        logger.info(
            "scheduling_policies_loaded",
            path=str(path),
            clinic_count=len(policies),
            default_mode=default.mode.value,
        )
        return cls(policies=policies, default=default)

    async def get_policy(self, clinic_id: UUID) -> SchedulingPolicy:
        return self._policies.get(clinic_id, self._default)

    def set_policy(self, clinic_id: UUID, policy: SchedulingPolicy) -> None:
        """Assign a clinic's policy."""
        self._policies[clinic_id] = policy

    def clear(self) -> None:
        """Remove every clinic policy. The default is kept."""
        self._policies.clear()
