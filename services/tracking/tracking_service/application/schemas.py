from pydantic import BaseModel, Field
from typing import Optional
from tracking_service.domain.roles import Role

class ShipmentCreate(BaseModel):
    # Left empty, a fresh tracking number is generated
    tracking_number: Optional[str] = Field(None, max_length=64)
    origin: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    recipient: Optional[str] = Field(None, max_length=200)

class TrackingEventCreate(BaseModel):
    status: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., max_length=200)
    date: str = Field(..., max_length=30)
    time: str = Field(..., max_length=30)
    # Nanoseconds since the epoch; stamped by the service clock when omitted
    timestamp: Optional[int] = Field(None, ge=-(2**63), le=2**63 - 1)
    note: Optional[str] = Field(None, max_length=500)

class TrackingEventRead(BaseModel):
    sequence: int
    status: str
    location: str
    date: str
    time: str
    timestamp: int
    note: Optional[str] = None

    class Config:
        from_attributes = True

class ShipmentRead(BaseModel):
    tracking_number: str
    origin: str
    destination: str
    recipient: Optional[str] = None
    created_at: int
    events: list[TrackingEventRead] = []

    class Config:
        from_attributes = True

class TrackingNumberRead(BaseModel):
    tracking_number: str

class UserProfileSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)

    class Config:
        from_attributes = True

class RoleAssignmentRequest(BaseModel):
    role: Role

class UserRoleRead(BaseModel):
    identity: str
    role: Role

    class Config:
        from_attributes = True

class IsAdminRead(BaseModel):
    identity: str
    is_admin: bool

class BootstrapRequest(BaseModel):
    token: str

class TokenRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=200)

class TokenRead(BaseModel):
    access_token: str
    token_type: str = "bearer"
