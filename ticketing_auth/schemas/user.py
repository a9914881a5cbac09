# ticketing_auth/schemas/user.py
from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class VerifyAdminRequest(SQLModel):
    """
    Re-entry of the admin's own password before a sensitive action.
    """

    model_config = ConfigDict(extra="forbid")

    password: str = Field(min_length=1)
