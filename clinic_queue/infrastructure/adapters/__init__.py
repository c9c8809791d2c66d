"""Production adapters for the application ports."""

from clinic_queue.infrastructure.adapters.system_time_authority import (
    SystemTimeAuthority,
)

__all__ = ["SystemTimeAuthority"]
