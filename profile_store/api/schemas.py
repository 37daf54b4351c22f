# profile_store/api/schemas.py
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field

from profile_store.profiles.models import Profile


class ProfileMutationResponse(BaseModel):
    success: Literal[True] = True
    id: str
    link: str = Field(..., description="Relative link to the profile viewer page.")
    message: str


class ProfileDetailModel(Profile):
    """Stored record plus the derived photo URL."""

    photo_url: str = Field(..., alias="photoUrl")

    @classmethod
    def from_domain(cls, profile: Profile, photo_url: str) -> "ProfileDetailModel":
        return cls(**profile.model_dump(), photo_url=photo_url)


class DeleteResponse(BaseModel):
    success: Literal[True] = True
    message: str


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    details: List[Dict[str, Any]] = Field(default_factory=list)

    def to_content(self) -> Dict[str, Any]:
        content = self.model_dump()
        if not self.details:
            content.pop("details")
        return content
