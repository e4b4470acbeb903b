from typing import Any
from pydantic import BaseModel


class BaseResponseDTO(BaseModel):
    """Envelope of every API response; failures carry a message and optional error details."""

    data: Any | None = None
    errors: list[Any] | None = None
    message: str
