"""
Hospital Data Services
Data-access services for appointments, beds, patients and staff over a record backend.
NOTE: Package initialization for the ward management web application
"""

__version__ = "1.0.0"
__author__ = "Hospital Data Services Team"
__description__ = "Appointment, bed, patient and staff services with FastAPI and PostgreSQL"
