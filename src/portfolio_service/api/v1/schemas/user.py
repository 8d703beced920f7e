from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from portfolio_service.domain.value_objects.enums import RoleName


class RegisterUserRequest(BaseModel):
    email: str = Field(min_length=3, max_length=50, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=5)
    role: RoleName = RoleName.REGISTERED


class RegisterUserResponse(BaseModel):
    id: UUID


class UpdateUserRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)


class UserResponse(BaseModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    roles: list[str]

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class AuthorizationTokenResponse(BaseModel):
    access_token: str
    refresh_token: str
