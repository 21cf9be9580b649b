from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator

from memoir.core.exceptions import ValidationError


class ProcessingRequest(BaseModel):
    """Inputs for a new processing session (one chapter's recordings)."""

    audio_urls: List[str] = Field(default_factory=list)
    chapter_title: str = ""
    chapter_description: str = ""
    user_preferences: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("audio_urls", mode="before")
    def drop_blank_urls(cls, value: Any) -> Any:
        """Recordings without an uploaded file carry empty URLs; skip them."""
        if isinstance(value, (list, tuple)):
            return [u for u in value if isinstance(u, str) and u.strip()]
        return value

    def validate_inputs(self) -> None:
        """Local precondition check performed before any network call."""
        if not self.audio_urls:
            raise ValidationError("No audio URLs provided")
        if not self.chapter_title.strip():
            raise ValidationError("Chapter title is required")
        if not self.chapter_description.strip():
            raise ValidationError("Chapter description is required")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "audioUrls": list(self.audio_urls),
            "chapterTitle": self.chapter_title,
            "chapterDescription": self.chapter_description,
            "userPreferences": dict(self.user_preferences),
        }
