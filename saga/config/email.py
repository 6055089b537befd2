"""Mail delivery configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, Field

from .base import BaseConfig
from .utils import resolve_env_reference


class EmailConfig(BaseConfig):
    """SMTP relay settings and the digest's sender/recipient addresses."""

    to: str = Field(..., min_length=3, description="Recipient address for the digest")
    from_address: str = Field(
        ...,
        min_length=3,
        description="Sender address",
        validation_alias=AliasChoices("from", "from_address"),
        serialization_alias="from",
    )
    relay_host: str = Field(
        ...,
        min_length=1,
        description="SMTP relay host name",
        validation_alias=AliasChoices("relay_host", "relay"),
        serialization_alias="relay_host",
    )
    port: int = Field(465, ge=1, le=65535, description="SMTP port")
    security: Literal["ssl", "starttls", "none"] = Field(
        "ssl",
        description="Transport security: implicit TLS, STARTTLS upgrade or plain",
    )
    username: str = Field(..., description="SMTP login name")
    password: str = Field(..., description="SMTP password, can use 'env:VAR_NAME' format")
    timeout: float = Field(60.0, gt=0, description="Socket timeout for the SMTP session (seconds)")

    @property
    def password_secret(self) -> str:
        """Return the password with any ``env:VAR`` reference expanded."""

        return resolve_env_reference(self.password)


__all__ = ["EmailConfig"]
