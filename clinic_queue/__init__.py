"""
clinic-queue - Appointment queue scheduling engine

Decides, for a single clinic-day, who is called next, how absent patients
are skipped and re-inserted, and how manual queue changes are audited.
Two scheduling disciplines share one state machine:

- flow: continuous, arrival-ordered queue for walk-in clinics
- slotted: fixed time grid keyed to scheduled start times

Storage, notification delivery and wait-time prediction are external
collaborators reached through the ports in clinic_queue.application.ports.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
