"""Configuration and profile schemas."""
from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROVIDER_NAME = "vkontakte"


class StrategyOptions(BaseModel):
    """Caller supplied strategy options. Every field is optional."""

    model_config = ConfigDict(extra="forbid")

    authorization_url: str | None = None
    token_url: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    callback_url: str | None = None
    scope: list[str] | str | None = None
    scope_separator: str | None = None
    lang: str | None = None
    photo_size: int | None = None
    profile_fields: list[str] | None = None
    api_version: str | None = None
    profile_url: str | None = None
    pass_request_to_callback: bool | None = None
    state: bool = False
    skip_user_profile: bool = False

    @field_validator("client_id", mode="before")
    @classmethod
    def coerce_client_id_to_str(cls, v):
        """VK app ids are numeric; accept them as integers too."""
        if v is None:
            return v
        return str(v)


class OAuth2ClientConfig(BaseModel):
    """Settings understood by the generic OAuth 2.0 client."""

    model_config = ConfigDict(frozen=True)

    authorization_url: str
    token_url: str
    client_id: str | None = None
    client_secret: str | None = None
    callback_url: str | None = None
    scope: tuple[str, ...] = ()
    scope_separator: str = " "
    state: bool = False
    timeout: float = 10.0


class ResolvedConfig(BaseModel):
    """Strategy options with every default applied. Never mutated."""

    model_config = ConfigDict(frozen=True)

    authorization_url: str
    token_url: str
    client_id: str | None
    client_secret: str | None
    callback_url: str | None
    scope: tuple[str, ...]
    scope_separator: str
    lang: str | None
    photo_size: int
    profile_fields: tuple[str, ...]
    api_version: str
    profile_url: str
    pass_request_to_callback: bool
    state: bool
    skip_user_profile: bool

    def client_config(self, timeout: float = 10.0) -> OAuth2ClientConfig:
        """Subset forwarded to the OAuth 2.0 client; ``lang`` and ``photo_size`` stay here."""
        return OAuth2ClientConfig(
            authorization_url=self.authorization_url,
            token_url=self.token_url,
            client_id=self.client_id,
            client_secret=self.client_secret,
            callback_url=self.callback_url,
            scope=self.scope,
            scope_separator=self.scope_separator,
            state=self.state,
            timeout=timeout,
        )


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


class ProfileName(BaseModel):
    model_config = ConfigDict(frozen=True)

    family_name: str = ""
    given_name: str = ""


class ProfileValue(BaseModel):
    """A ``{"value": ...}`` descriptor, used for photos and emails."""

    model_config = ConfigDict(frozen=True)

    value: str


class NormalizedProfile(BaseModel):
    """Provider independent view of the authenticated user."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field(default=PROVIDER_NAME)
    id: int | str
    username: str | None = None
    display_name: str
    name: ProfileName
    gender: Gender = Gender.UNKNOWN
    photos: list[ProfileValue] = Field(default_factory=list)
    city: Any = None
    emails: list[ProfileValue] | None = None
    raw: str = ""
    json_payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("provider")
    @classmethod
    def provider_is_fixed(cls, v: str) -> str:
        if v != PROVIDER_NAME:
            raise ValueError(f"provider must be '{PROVIDER_NAME}'")
        return v

    def with_email(self, email: str) -> NormalizedProfile:
        """Return a copy carrying ``email`` as its only email entry."""
        return self.model_copy(update={"emails": [ProfileValue(value=email)]})
