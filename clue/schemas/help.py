"""
clue/schemas/help.py

Pydantic models for the Help endpoint (POST /api/help).

The wire format is camelCase (``aiText``) because the browser form reads it
directly; Python code uses snake_case and serializes by alias.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageAttachment(BaseModel):
    """One uploaded image, as the form holds it."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", description="Original file name (display only)")
    src: str = Field(
        ...,
        min_length=1,
        description="Image reference usable by the model: data: URI or https URL",
    )


def _image_src(img) -> str | None:
    if isinstance(img, ImageAttachment):
        return img.src
    if isinstance(img, dict):
        return img.get("src") or None
    return None


class HelpRequest(BaseModel):
    """Request body for POST /api/help. Every field is optional."""

    model_config = ConfigDict(extra="ignore")

    code: str | None = Field(default=None, description="Student's code snippet (may be partial)")
    ask: str | None = Field(default=None, description="Free-text question or context")
    images: list[ImageAttachment] = Field(
        default_factory=list,
        description="Uploaded images, in the order the student added them",
    )

    @field_validator("images", mode="before")
    @classmethod
    def skip_missing_images(cls, v):
        # `images: null`, null entries and entries without a src are dropped, not rejected.
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [img for img in v if _image_src(img)]


class HelpResponse(BaseModel):
    """Success body: the coaching text to display."""

    model_config = ConfigDict(populate_by_name=True)

    ai_text: str = Field(..., alias="aiText")


class HelpError(BaseModel):
    """Failure body. Never carries ``aiText``."""

    error: str
