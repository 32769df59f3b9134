from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from plaque_registry.models.plaque import PlaqueStatus

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class PlaqueCreate(BaseModel):
    plate_number: str = Field(alias="plateNumber", min_length=1)
    owner_name: str = Field(alias="ownerName", min_length=1)
    owner_email: str = Field(alias="ownerEmail", pattern=EMAIL_PATTERN)
    owner_phone: str | None = Field(default=None, alias="ownerPhone")
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)


class PlaqueUpdate(BaseModel):
    """Validated values for a partial update, keyed by column name.

    Every field is optional; only the ones present in the payload are applied.
    """

    plate_number: str | None = Field(default=None, alias="plateNumber", min_length=1)
    owner_name: str | None = Field(default=None, alias="ownerName", min_length=1)
    owner_email: str | None = Field(default=None, alias="ownerEmail", pattern=EMAIL_PATTERN)
    owner_phone: str | None = Field(default=None, alias="ownerPhone")
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")
    status: PlaqueStatus | None = None

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class PlaqueResponse(BaseModel):
    id: int
    plate_number: str = Field(serialization_alias="plateNumber")
    owner_name: str = Field(serialization_alias="ownerName")
    owner_email: str = Field(serialization_alias="ownerEmail")
    owner_phone: str | None = Field(default=None, serialization_alias="ownerPhone")
    registration_date: str = Field(serialization_alias="registrationDate")
    expiry_date: str = Field(serialization_alias="expiryDate")
    status: str
    created_by: int | None = Field(default=None, serialization_alias="createdBy")
    created_at: str = Field(serialization_alias="createdAt")
    updated_at: str = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(serialization_alias="totalPages")


class PlaqueStatistics(BaseModel):
    total: int = 0
    active: int = 0
    expired: int = 0
    suspended: int = 0
    expiring_soon: int = 0
