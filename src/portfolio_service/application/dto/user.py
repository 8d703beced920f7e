from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class RegisterUserCommand:
    email: str
    first_name: str
    last_name: str
    password: str
    role: str


@dataclass(frozen=True, slots=True)
class UpdateUserCommand:
    user_id: UUID
    first_name: str
    last_name: str


@dataclass(frozen=True, slots=True)
class UserDTO:
    id: UUID
    email: str
    first_name: str
    last_name: str
    roles: list[str]


@dataclass(frozen=True, slots=True)
class LogInUserCommand:
    email: str
    password: str
