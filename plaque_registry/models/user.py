from sqlalchemy import Column, Integer, String

from plaque_registry.database import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_USER)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
