"""User domain model."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
from uuid import uuid4


class UserRegister(BaseModel):
    """Payload for registering an account."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    email: str = ""
    password: str = ""
    password_confirm: str = Field(default="", alias="passwordConfirm")


class UserLogin(BaseModel):
    """Payload for logging in."""
    email: str = ""
    password: str = ""


class UserRename(BaseModel):
    """Payload for changing the display name."""
    name: str


class User(BaseModel):
    """An account as seen by everything outside the credential store. Carries no hash."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    email: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserEnvelope(BaseModel):
    """Response wrapper used by the auth routes."""
    success: bool = True
    user: User
