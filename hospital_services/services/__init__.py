"""
Entity services for the ward management application.
NOTE: Services are built around an injected record client instead of module-level singletons
"""
from typing import Dict, Optional

from hospital_services.clients.base import RecordClient
from hospital_services.notifications import Notifier
from hospital_services.services.appointments import AppointmentService
from hospital_services.services.beds import BedService
from hospital_services.services.common import EntityService, Outcome, ServiceResult
from hospital_services.services.patients import PatientService
from hospital_services.services.staff import StaffService


def build_services(client: RecordClient, notifier: Optional[Notifier] = None) -> Dict[str, EntityService]:
    """One service per entity, sharing the client and notifier."""
    return {
        "appointments": AppointmentService(client, notifier),
        "beds": BedService(client, notifier),
        "patients": PatientService(client, notifier),
        "staff": StaffService(client, notifier),
    }


__all__ = [
    "AppointmentService",
    "BedService",
    "PatientService",
    "StaffService",
    "EntityService",
    "Outcome",
    "ServiceResult",
    "build_services",
]
