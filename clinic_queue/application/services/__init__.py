"""Application services for the queue engine."""

from clinic_queue.application.services.queue_audit_log import QueueAuditLog
from clinic_queue.application.services.queue_event_emitter import QueueEventEmitter
from clinic_queue.application.services.queue_service import QueueDomainService

__all__ = [
    "QueueAuditLog",
    "QueueDomainService",
    "QueueEventEmitter",
]
