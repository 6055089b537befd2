"""Feed source and fetch configuration."""

from __future__ import annotations

from pydantic import AliasChoices, ConfigDict, Field

from .base import BaseConfig


class FeedConfig(BaseConfig):
    """A single polled feed. Immutable once loaded."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    address: str = Field(
        ...,
        min_length=1,
        description="Feed URL (RSS or Atom)",
        validation_alias=AliasChoices("address", "url"),
        serialization_alias="address",
    )
    random_fallback: bool = Field(
        False,
        description="Pick a random unprocessed older entry when nothing new was published",
        validation_alias=AliasChoices("random_fallback", "random"),
        serialization_alias="random_fallback",
    )


class FetchConfig(BaseConfig):
    """HTTP settings used when downloading feeds."""

    timeout: float = Field(30.0, gt=0, description="Request timeout (seconds)")
    max_retries: int = Field(3, ge=1, description="Attempts per feed before giving up")
    retry_delay: float = Field(5.0, ge=0, description="Delay between attempts (seconds)")
    user_agent: str = Field("Saga/0.1", description="User-Agent header sent with each request")


__all__ = ["FeedConfig", "FetchConfig"]
