"""Domain services: queue ordering and position allocation."""

from clinic_queue.domain.services.position_allocator import PositionAllocator
from clinic_queue.domain.services.selection_strategy import (
    FlowSelectionStrategy,
    SelectionStrategy,
    SlottedSelectionStrategy,
    select_strategy,
)

__all__ = [
    "FlowSelectionStrategy",
    "PositionAllocator",
    "SelectionStrategy",
    "SlottedSelectionStrategy",
    "select_strategy",
]
