"""Identity provider and drive request schemas."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IdentityClaims(BaseModel):
    """Claims decoded from the provider's identity token.

    subject is the provider's stable user id (the ``sub`` claim).
    """

    subject: str = Field(..., min_length=1)
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None


class FolderLookupRequest(BaseModel):
    """Body of POST /api/getFolderID."""

    folder_name: str = Field(..., min_length=1)
    access_token: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
