"""
Pydantic schemas for admin dashboards.
"""

from pydantic import BaseModel

from app.schemas.user import UserResponse


class UserWithStats(UserResponse):
    total_registrations: int = 0
    active_registrations: int = 0
    paid_registrations: int = 0


class UserListStats(BaseModel):
    total_users: int
    role_distribution: dict[str, int]


class AdminUserListResponse(BaseModel):
    users: list[UserWithStats]
    stats: UserListStats


class RoleUpdateResponse(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
