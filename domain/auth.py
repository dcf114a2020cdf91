"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional

from domain.enums import UserRole


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole = UserRole.USER
    disabled: bool = False

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_manage(self, owner_id: UUID) -> bool:
        """Owners and admins may act on a resource"""
        return self.is_admin or self.user_id == owner_id


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
