from typing import List, Optional

import strawberry

from gympulse.graphql.users.types import UserType


@strawberry.input
class LoginInput:
    identifier: str
    password: str


@strawberry.input
class RegisterInput:
    username: str
    password: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None


@strawberry.input
class ChangePasswordInput:
    current_password: str
    new_password: str


@strawberry.type
class TokenResponse:
    success: bool
    message: str
    access_token: Optional[str] = None
    role: Optional[str] = None
    user: Optional[UserType] = None
    member_id: Optional[int] = None
    trainer_id: Optional[int] = None


@strawberry.type
class AuthMessage:
    success: bool
    message: str
    errors: List[str] = strawberry.field(default_factory=list)
