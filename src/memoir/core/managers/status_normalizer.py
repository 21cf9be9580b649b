"""Normalization of raw backend status payloads into ProcessingSession.

The backend may spell every field either in snake_case or camelCase. Field
resolution is an explicit step with a fixed precedence (snake_case first,
then camelCase); a name counts as present when its value is not None. When
neither spelling is present the field default applies.

Unknown status strings map to `processing`, never to a terminal status, so
an unexpected value cannot end a poll loop early.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from memoir.core.exceptions import MalformedResponseError
from memoir.core.models.session import ProcessingSession, SessionError, SessionStatus

_MISSING = object()

# canonical field -> accepted wire names, in precedence order
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "session_id": ("session_id", "sessionId"),
    "status": ("status",),
    "current_stage": ("current_stage", "currentStage"),
    "progress_percentage": ("progress_percentage", "progressPercentage"),
    "current_task": ("current_task", "currentTask"),
    "estimated_completion": ("estimated_completion", "estimatedCompletion"),
    "results_preview": ("results_preview", "resultsPreview"),
    "errors": ("errors",),
}

DEFAULT_STAGE = "Processing..."
DEFAULT_TASK = "Initializing..."


def resolve_field(raw: Mapping[str, Any], names: Sequence[str], default: Any = None) -> Any:
    """Return the value of the first present name in `names`, else `default`."""
    for name in names:
        value = raw.get(name, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def normalize_status(value: Any) -> SessionStatus:
    if not isinstance(value, str):
        return SessionStatus.processing
    try:
        return SessionStatus(value.strip().lower())
    except ValueError:
        return SessionStatus.processing


def clamp_progress(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(min(100.0, max(0.0, number)))


def normalize_errors(value: Any) -> List[Union[SessionError, str]]:
    if not isinstance(value, list):
        return []
    errors: List[Union[SessionError, str]] = []
    for entry in value:
        if isinstance(entry, dict):
            errors.append(
                SessionError(
                    timestamp=str(entry.get("timestamp") or ""),
                    error=str(entry.get("error") or entry.get("message") or ""),
                    traceback=_traceback_text(entry.get("traceback")),
                )
            )
        elif entry is not None:
            errors.append(str(entry))
    return errors


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _traceback_text(value: Any) -> Optional[str]:
    # Some workers send the formatted frames as a list
    if isinstance(value, list):
        return "\n".join(str(frame) for frame in value)
    return _optional_str(value)


def normalize(raw: Any, session_id: Optional[str] = None) -> ProcessingSession:
    """Convert a raw status payload into the canonical session shape.

    Args:
        raw: Decoded JSON status payload
        session_id: Id the caller polled for; used when the payload omits it

    Raises:
        MalformedResponseError: if `raw` is not a JSON object
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError(
            f"Status payload must be a JSON object, got {type(raw).__name__}",
            session_id=session_id,
        )

    def field(name: str, default: Any = None) -> Any:
        return resolve_field(raw, FIELD_ALIASES[name], default)

    return ProcessingSession(
        session_id=str(session_id or field("session_id", "")),
        status=normalize_status(field("status")),
        current_stage=str(field("current_stage", DEFAULT_STAGE)),
        progress_percentage=clamp_progress(field("progress_percentage", 0)),
        current_task=str(field("current_task", DEFAULT_TASK)),
        estimated_completion=_optional_str(field("estimated_completion")),
        results_preview=field("results_preview"),
        errors=normalize_errors(field("errors", [])),
    )


class StatusNormalizer:
    """Injectable wrapper around `normalize` for the job monitor."""

    def normalize(self, raw: Any, session_id: Optional[str] = None) -> ProcessingSession:
        return normalize(raw, session_id)
