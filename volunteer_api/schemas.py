from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Literal, Optional
from datetime import datetime

ApplicationStatus = Literal["requested", "approved", "rejected"]


class TokenRequest(BaseModel):
    email: Optional[EmailStr] = None


class VolunteerPostCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    volunteersNeeded: int = Field(default=0, ge=0)
    deadline: Optional[str] = None
    thumbnail: Optional[str] = None
    organizerName: Optional[str] = None
    # must match the token when sent; the token is what gets stored
    organizerEmail: Optional[EmailStr] = None


class VolunteerPostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    volunteersNeeded: Optional[int] = Field(default=None, ge=0)
    deadline: Optional[str] = None
    thumbnail: Optional[str] = None
    organizerName: Optional[str] = None

    @field_validator("*")
    @classmethod
    def reject_null(cls, v):
        # leave a field out to keep it; null is not a value
        if v is None:
            raise ValueError("must not be null")
        return v


class VolunteerPostOut(BaseModel):
    id: str
    organizerEmail: str
    organizerName: Optional[str] = None
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    volunteersNeeded: int = 0
    deadline: Optional[str] = None
    thumbnail: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class InsertResult(BaseModel):
    acknowledged: bool
    insertedId: str


class CountResult(BaseModel):
    id: str
    volunteersNeeded: int


class ApplicationCreate(BaseModel):
    volunteerPostId: str = Field(min_length=1)
    message: Optional[str] = None
    userEmail: Optional[EmailStr] = None


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class ApplicationOut(BaseModel):
    id: str
    userEmail: str
    volunteerPostId: str
    status: ApplicationStatus = "requested"
    message: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class UserUpsert(BaseModel):
    name: Optional[str] = None
    photoURL: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    photoURL: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class Message(BaseModel):
    message: str
