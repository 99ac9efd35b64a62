from datetime import datetime

from pydantic import BaseModel


class PatientResponse(BaseModel):
    id: int
    name: str
    email: str | None
    username: str | None
    age: int | None
    gender: str | None
    phone: str | None
    address: str | None
    verified: str
    created_at: datetime

    model_config = {"from_attributes": True}
