from enum import StrEnum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field


class SessionStatus(StrEnum):
    pending = "pending"
    initializing = "initializing"
    processing = "processing"
    completed = "completed"
    failed = "failed"


TERMINAL_STATUSES = frozenset({SessionStatus.completed, SessionStatus.failed})


class PipelineStage(StrEnum):
    """Coarse pipeline phase derived from the free-text stage label (display only)."""
    transcription = "transcription"
    analysis = "analysis"
    storyline = "storyline"
    writing = "writing"
    unknown = "unknown"


# Checked in order; first keyword hit wins.
_STAGE_KEYWORDS = (
    (PipelineStage.transcription, ("transcrib",)),
    (PipelineStage.analysis, ("chunk", "analyz")),
    (PipelineStage.storyline, ("graph", "storyline")),
    (PipelineStage.writing, ("generat", "writ")),
)


def classify_stage(label: Optional[str]) -> PipelineStage:
    lowered = (label or "").lower()
    for stage, keywords in _STAGE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return stage
    return PipelineStage.unknown


class SessionError(BaseModel):
    timestamp: str = ""
    error: str = ""
    traceback: Optional[str] = None


class ProcessingSession(BaseModel):
    """Client-side read-only projection of a backend processing session.

    Notes:
    - `progress_percentage` is clamped by the normalizer but is NOT monotonic;
      the backend may report lower values on later polls.
    - `current_stage` / `current_task` are display labels, never control inputs.
    - `errors` is append-only on the server; the client only reads it.
    """

    session_id: str
    status: SessionStatus = SessionStatus.processing
    current_stage: str = "Processing..."
    progress_percentage: int = Field(0, ge=0, le=100)
    current_task: str = "Initializing..."
    estimated_completion: Optional[str] = None
    results_preview: Optional[Any] = None
    errors: List[Union[SessionError, str]] = Field(default_factory=list)

    model_config = {"frozen": True}

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def error_messages(self) -> List[str]:
        """Flatten structured and plain error entries into message strings."""
        return [e.error if isinstance(e, SessionError) else str(e) for e in self.errors]

    def pipeline_stage(self) -> PipelineStage:
        return classify_stage(self.current_stage)
