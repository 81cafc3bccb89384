from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union


class LoginRequest(BaseModel):
    student_id: str = Field(..., alias="studentId", min_length=1)
    password: Union[str, int]

    model_config = ConfigDict(
        populate_by_name=True
    )


class MessageResponse(BaseModel):
    success: bool
    message: Optional[str] = None


class StudentInfoResponse(BaseModel):
    studentId: str
    studentName: str


class TeacherResponse(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(
        from_attributes=True
    )
