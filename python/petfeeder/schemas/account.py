"""Account Pydantic schemas.

Two shapes exist on purpose:
- Account / NewAccount: store-facing, may carry credential_hash
- AccountOut: everything that leaves the gateway (responses, session tokens).
  It has no credential field at all, and ignores unknown keys on input.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class LoginMethod(str, Enum):
    """How an account authenticates."""

    provider = "provider"
    direct = "direct"


class NewAccount(BaseModel):
    """Account fields prior to the store assigning an id.

    Exactly one of subject / credential_hash is set, matching login_method.
    """

    login_method: LoginMethod
    subject: str | None = None
    username: str | None = None
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    credential_hash: str | None = None

    @model_validator(mode="after")
    def check_login_method_fields(self) -> "NewAccount":
        if self.login_method == LoginMethod.provider:
            if not self.subject:
                raise ValueError("provider accounts require a subject")
            if self.credential_hash is not None:
                raise ValueError("provider accounts must not carry a credential hash")
        else:
            if not self.credential_hash:
                raise ValueError("direct accounts require a credential hash")
            if not self.username:
                raise ValueError("direct accounts require a username")
            if self.subject is not None:
                raise ValueError("direct accounts must not carry a subject")
        return self


class Account(NewAccount):
    """Stored account, as returned by the identity store."""

    id: str

    def to_public(self) -> "AccountOut":
        """Strip the credential and return the outward-facing snapshot."""
        return AccountOut(
            id=self.id,
            subject=self.subject,
            username=self.username,
            email=self.email,
            display_name=self.display_name,
            avatar_url=self.avatar_url,
            login_method=self.login_method,
        )


class AccountOut(BaseModel):
    """Credential-free account snapshot (camelCase on the wire)."""

    id: str
    subject: str | None = None
    username: str | None = None
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    login_method: LoginMethod

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class RegisterRequest(BaseModel):
    """Body of POST /api/customUsers."""

    username: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=1, max_length=1024)
    email: str | None = None
    display_name: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(BaseModel):
    """Body of POST /api/login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
