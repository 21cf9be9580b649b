from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Chapter(BaseModel):
    id: str = ""
    title: str = ""
    content: str = ""
    quality_score: Optional[float] = None
    themes: List[str] = Field(default_factory=list)
    participants: List[str] = Field(default_factory=list)
    temporal_markers: List[str] = Field(default_factory=list)
    word_count: int = 0
    estimated_reading_time: int = 0  # minutes


class FollowupQuestion(BaseModel):
    id: str = ""
    category: str = ""
    question: str = ""
    context: str = ""
    priority_score: float = 0
    reasoning: str = ""
    suggested_answers: List[str] = Field(default_factory=list)


class TemporalRange(BaseModel):
    start: str = ""
    end: str = ""


class Storyline(BaseModel):
    id: str = ""
    title: str = ""
    description: str = ""
    chapters: List[str] = Field(default_factory=list)
    temporal_range: TemporalRange = Field(default_factory=TemporalRange)
    confidence: float = 0


class GraphSummary(BaseModel):
    total_nodes: int = 0
    total_edges: int = 0
    main_storylines: int = 0
    temporal_span: str = ""
    key_themes: List[str] = Field(default_factory=list)


class ProcessingSummary(BaseModel):
    total_processing_time: str = ""
    audio_files_processed: int = 0
    transcription_accuracy: float = 0
    chapters_generated: int = 0
    words_generated: int = 0
    ai_agents_used: List[str] = Field(default_factory=list)


class ProcessingResults(BaseModel):
    """Canonical results of a completed session, owned by the caller once returned."""

    chapters: List[Chapter] = Field(default_factory=list)
    followup_questions: List[FollowupQuestion] = Field(default_factory=list)
    question_categories: Dict[str, List[FollowupQuestion]] = Field(default_factory=dict)
    storylines: List[Storyline] = Field(default_factory=list)
    graph_summary: GraphSummary = Field(default_factory=GraphSummary)
    processing_summary: ProcessingSummary = Field(default_factory=ProcessingSummary)
