from pydantic import BaseModel, Field

from plaque_registry.schemas.plaque import EMAIL_PATTERN


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    token: str
    user: UserResponse
