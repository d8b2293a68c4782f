from datetime import datetime
from typing import List, Optional

import strawberry


@strawberry.type
class UserType:
    id: int
    username: str
    email: str
    role: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str]
    created_at: Optional[datetime]

    @classmethod
    def from_data(cls, data) -> "UserType":
        """Accepts a UserData or a User model; both expose the same fields."""
        return cls(
            id=data.id,
            username=data.username,
            email=data.email,
            role=data.role,
            first_name=data.first_name,
            last_name=data.last_name,
            full_name=data.full_name,
            phone=data.phone,
            created_at=data.created_at,
        )


@strawberry.input
class CreateUserInput:
    username: str
    password: str
    email: str
    first_name: str
    last_name: str
    role: str = "MEMBER"
    phone: Optional[str] = None


@strawberry.input
class UpdateUserInput:
    username: str
    email: str
    first_name: str
    last_name: str
    role: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


@strawberry.type
class UserResponse:
    success: bool
    message: str
    user: Optional[UserType] = None
    errors: List[str] = strawberry.field(default_factory=list)


@strawberry.type
class DeleteResponse:
    success: bool
    message: str
