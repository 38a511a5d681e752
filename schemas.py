"""
Request Schemas for the Care.xyz Booking API

Each document model below maps to a MongoDB collection:
Service -> "services", User -> "users", Booking -> "bookings".

Bodies are not validated beyond the user email: clients may send any
fields with any values and they are stored as given. The declared fields
document what the frontend sends.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

VALID_ROLES = ("user", "admin")

# Booking status is an open set; these are the values the server itself uses.
PENDING = "Pending"
CANCELLED = "Cancelled"


class Document(BaseModel):
    model_config = ConfigDict(extra="allow")

    def fields(self) -> dict:
        """Only the fields the client actually sent, without ``_id``."""
        data = self.model_dump(exclude_unset=True)
        data.pop("_id", None)
        return data


class Service(Document):
    title: Optional[Any] = Field(None, description="Service title")
    description: Optional[Any] = None
    image: Optional[Any] = Field(None, description="Image URL")
    chargePerHour: Optional[Any] = None
    chargePerDay: Optional[Any] = None
    features: Optional[Any] = Field(None, description="List of feature strings")
    category: Optional[Any] = Field(None, description="e.g. baby-care, elderly, sick-people")
    createdBy: Optional[Any] = Field(None, description="Owner email")


class User(Document):
    # Stored exactly as sent; lookups by email are exact-match
    email: str = Field(..., min_length=1, description="Email address, unique per user")
    name: Optional[Any] = None
    photoURL: Optional[Any] = None


class UserUpdate(Document):
    name: Optional[Any] = None
    photoURL: Optional[Any] = None


class Booking(Document):
    userEmail: Optional[Any] = None
    userName: Optional[Any] = None
    serviceName: Optional[Any] = None
    durationValue: Optional[Any] = None
    durationType: Optional[Any] = Field(None, description="hours or days")
    area: Optional[Any] = None
    city: Optional[Any] = None
    district: Optional[Any] = None
    division: Optional[Any] = None
    address: Optional[Any] = None
    totalCost: Optional[Any] = None


class StatusUpdate(BaseModel):
    status: str


class RoleUpdate(BaseModel):
    role: Optional[str] = None
