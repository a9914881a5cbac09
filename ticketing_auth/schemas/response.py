# ticketing_auth/schemas/response.py
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope shared by every endpoint, success or failure.

      - status: True on success
      - code: HTTP status code, repeated in the body
      - errors: per-field map for validation failures, else []
    """

    status: bool = True
    code: int = 200
    message: str
    data: T | None = None
    errors: dict[str, list[str]] | list[Any] = Field(default_factory=list)
