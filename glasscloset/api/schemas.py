"""Response envelopes returned by the closet backend."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class LoginResponse(BaseModel):
    """Body of a successful ``POST /login``."""

    message: str = ""
    access_token: str


class SignupResponse(BaseModel):
    """Body of a successful ``POST /signup``."""

    message: str = ""
    user_id: str | int


class ErrorResponse(BaseModel):
    """Error body; FastAPI backends put either a string or a list of issues in ``detail``."""

    detail: Any = None

    def text(self) -> str | None:
        if self.detail is None:
            return None
        if isinstance(self.detail, str):
            return self.detail
        return str(self.detail)


class ClothingItemsResponse(BaseModel):
    """Body of ``GET /clothing-items``; items stay raw for the tolerant decoder."""

    clothing_items: list[Any]


class DeleteResponse(BaseModel):
    """Body of ``DELETE /clothing-items/{id}``."""

    success: bool = False
    message: str = ""
