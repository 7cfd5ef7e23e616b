"""Domain Entities - Front-desk staff accounts"""
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from typing import Optional


class User(BaseModel):
    """Staff member allowed to operate the reservation engine"""
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str = "FRONT_DESK"
    disabled: bool = False


class UserInDB(User):
    """User with hashed password for storage"""
    hashed_password: str
