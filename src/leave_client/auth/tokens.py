"""Token payloads exchanged with the auth endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TokenPair(BaseModel):
    """Access/refresh token pair as returned by the backend."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_token: str = Field(alias="accessToken", min_length=1)
    refresh_token: str = Field(alias="refreshToken", min_length=1)

    @classmethod
    def from_body(cls, body: Any) -> "TokenPair":
        """Parse a response body, unwrapping the ``{"data": ...}`` envelope.

        Raises:
            pydantic.ValidationError: Tokens are missing or empty.
        """
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        return cls.model_validate(body)
