from abc import ABC, abstractmethod
from typing import Any, Dict

from memoir.core.models.submission import ProcessingRequest


class JobClientPort(ABC):
    """Single logical requests against the AI processing backend.

    Implementations hide per-request retries; callers only see the final
    outcome or a classified BackendAiServiceError.
    """

    @abstractmethod
    async def submit_job(self, request: ProcessingRequest) -> str:
        """Start a processing session and return its session id."""
        pass

    @abstractmethod
    async def fetch_status(self, session_id: str) -> Dict[str, Any]:
        """Return the raw status payload for a session."""
        pass

    @abstractmethod
    async def fetch_results(self, session_id: str) -> Dict[str, Any]:
        """Return the raw results payload for a completed session."""
        pass
