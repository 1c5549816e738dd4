from typing import List, Optional
from pydantic import BaseModel, Field

AUTO_GENERATE = "Auto Generate"


class NewPatient(BaseModel):
    """
    Flat form mirroring four tabs: patient, appointment, prescribes and physician.
    Every field is free text.
    """
    patientId: str = AUTO_GENERATE
    firstName: str = ""
    lastName: str = ""
    location: str = ""
    age: str = ""
    phone: str = ""
    address: str = ""
    email: str = ""
    prescription: str = ""
    dose: str = ""
    visitDate: str = ""
    nextVisit: str = ""
    physicianId: str = ""
    physicianName: str = ""
    physicianPhone: str = ""
    bill: str = ""


class AddPatientResult(BaseModel):
    patient_id: str
    appointment_id: str
    sheets_written: List[str] = Field(default_factory=list)
    message: Optional[str] = None
