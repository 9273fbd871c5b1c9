"""Pydantic v2 models for the logged-in user and login credentials."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, SecretStr, field_validator


class UserIdentity(BaseModel):
    """Identity data returned by the current-user endpoint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(
        validation_alias=AliasChoices("userId", "user_id"),
        serialization_alias="userId",
    )
    display_name: str = Field(
        validation_alias=AliasChoices("displayName", "name", "display_name"),
        serialization_alias="displayName",
    )
    email: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def _none_email_is_empty(cls, value):
        return "" if value is None else value


class Credentials(BaseModel):
    """Email/password pair used for a login attempt."""

    model_config = ConfigDict(frozen=True)

    email: str
    password: SecretStr
