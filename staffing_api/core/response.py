"""Standardized JSON response envelope helpers."""


from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Single-item response envelope: `{ data: {...} }`"""

    data: T

    model_config = {"populate_by_name": True}


class MessageResponse(BaseModel, Generic[T]):
    """Envelope with a human-readable outcome: `{ data: {...}, message: "..." }`"""

    data: T
    message: str

    model_config = {"populate_by_name": True}
