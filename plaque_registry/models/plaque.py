from enum import Enum

from sqlalchemy import Column, Integer, String, ForeignKey

from plaque_registry.database import Base


class PlaqueStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class Plaque(Base):
    __tablename__ = "plaques"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate_number = Column(String, nullable=False, unique=True, index=True)
    owner_name = Column(String, nullable=False, index=True)
    owner_email = Column(String, nullable=False, index=True)
    owner_phone = Column(String, nullable=True)
    # ISO 8601 UTC strings, see plaque_registry.utils.time
    registration_date = Column(String, nullable=False)
    expiry_date = Column(String, nullable=False)
    status = Column(String, nullable=False, default=PlaqueStatus.ACTIVE.value, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)
