from hospital_services.clients.base import RecordClient

__all__ = ["RecordClient"]
