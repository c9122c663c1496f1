# NOTE: SQLAlchemy models for the record backend tables (snake_case columns with _c suffix)
from sqlalchemy import Column, Integer, String, Text, CheckConstraint, Index
from sqlalchemy.orm import declarative_base
from typing import Dict, List

Base = declarative_base()


class Appointment(Base):
    """Scheduled consultations between a patient and a doctor."""
    __tablename__ = "appointment_c"

    Id = Column(Integer, primary_key=True, autoincrement=True)
    id_c = Column(String(20))
    patient_id_c = Column(String(20))
    doctor_id_c = Column(String(20))
    department_c = Column(String(100))
    date_time_c = Column(String(40))
    duration_c = Column(Integer)
    type_c = Column(String(50))
    status_c = Column(String(30))
    notes_c = Column(Text)

    __table_args__ = (
        CheckConstraint('duration_c IS NULL OR duration_c > 0', name='chk_appointment_duration'),
        Index('idx_appointment_date_time', 'date_time_c'),
        Index('idx_appointment_department', 'department_c'),
    )


class Bed(Base):
    """Ward beds and their occupancy."""
    __tablename__ = "bed_c"

    Id = Column(Integer, primary_key=True, autoincrement=True)
    id_c = Column(String(20))
    ward_c = Column(String(100))
    number_c = Column(String(20))
    type_c = Column(String(50))
    status_c = Column(String(30))
    patient_id_c = Column(String(20))
    last_cleaned_c = Column(String(40))

    __table_args__ = (
        Index('idx_bed_ward', 'ward_c'),
        Index('idx_bed_status', 'status_c'),
    )


class Patient(Base):
    """Admitted and outpatient demographic records."""
    __tablename__ = "patient_c"

    Id = Column(Integer, primary_key=True, autoincrement=True)
    id_c = Column(String(20))
    name_c = Column(String(200))
    date_of_birth_c = Column(String(20))
    gender_c = Column(String(20))
    contact_c = Column(String(100))
    emergency_contact_c = Column(String(200))
    blood_type_c = Column(String(5))
    allergies_c = Column(Text)
    current_ward_c = Column(String(100))
    bed_number_c = Column(String(20))
    status_c = Column(String(30))
    admission_date_c = Column(String(20))

    __table_args__ = (
        Index('idx_patient_status', 'status_c'),
        Index('idx_patient_name', 'name_c'),
    )


class Staff(Base):
    """Doctors, nurses and administrative staff."""
    __tablename__ = "staff_c"

    Id = Column(Integer, primary_key=True, autoincrement=True)
    id_c = Column(String(20))
    name_c = Column(String(200))
    role_c = Column(String(30))
    department_c = Column(String(100))
    shift_c = Column(String(30))
    contact_c = Column(String(100))
    specialization_c = Column(String(100))

    __table_args__ = (
        Index('idx_staff_department', 'department_c'),
        Index('idx_staff_role_shift', 'role_c', 'shift_c'),
    )


def table_columns() -> Dict[str, List[str]]:
    """Column names per record table, used to whitelist descriptor fields."""
    return {
        name: [column.name for column in table.columns]
        for name, table in Base.metadata.tables.items()
    }
