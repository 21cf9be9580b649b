"""Transformation of raw results payloads into ProcessingResults.

A partially populated payload must never crash the transformer: every
missing numeric field becomes 0, every missing list an empty list and every
missing string an empty string. Names are resolved with the same
snake_case-then-camelCase precedence as status payloads.
"""

import math
from typing import Any, Dict, List, Mapping

from memoir.core.exceptions import MalformedResponseError
from memoir.core.managers.status_normalizer import resolve_field
from memoir.core.models.results import (
    Chapter,
    FollowupQuestion,
    GraphSummary,
    ProcessingResults,
    ProcessingSummary,
    Storyline,
    TemporalRange,
)

WORDS_PER_MINUTE = 200


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _get(raw: Mapping[str, Any], name: str, default: Any = None) -> Any:
    names = (name,) if "_" not in name else (name, _camel(name))
    return resolve_field(raw, names, default)


def _str(raw: Mapping[str, Any], name: str) -> str:
    value = _get(raw, name, "")
    return value if isinstance(value, str) else str(value)


def _number(raw: Mapping[str, Any], name: str) -> float:
    value = _get(raw, name, 0)
    if isinstance(value, bool):
        return 0
    if not isinstance(value, (int, float)):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return 0
    # json decodes 1e999 and NaN to non-finite floats
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return value


def _finite(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _int(raw: Mapping[str, Any], name: str) -> int:
    return int(_number(raw, name))


def _str_list(raw: Mapping[str, Any], name: str) -> List[str]:
    value = _get(raw, name, [])
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def count_words(content: str) -> int:
    return len(content.split())


def reading_time(word_count: int) -> int:
    """Minutes to read `word_count` words, rounded up."""
    return -(-max(0, word_count) // WORDS_PER_MINUTE)


class ResultTransformer:
    """Maps the results wire shape onto the canonical ProcessingResults."""

    def transform(self, raw: Any) -> ProcessingResults:
        if not isinstance(raw, dict):
            raise MalformedResponseError(
                f"Results payload must be a JSON object, got {type(raw).__name__}"
            )

        categories_raw = _get(raw, "question_categories", {})
        categories: Dict[str, List[FollowupQuestion]] = {}
        if isinstance(categories_raw, dict):
            categories = {
                str(name): [self.transform_question(q) for q in _dicts(questions)]
                for name, questions in categories_raw.items()
            }

        graph_raw = _get(raw, "graph_summary", {})
        summary_raw = _get(raw, "processing_summary", {})

        return ProcessingResults(
            chapters=[self.transform_chapter(c) for c in _dicts(raw.get("chapters"))],
            followup_questions=[
                self.transform_question(q) for q in _dicts(_get(raw, "followup_questions", []))
            ],
            question_categories=categories,
            storylines=[self.transform_storyline(s) for s in _dicts(raw.get("storylines"))],
            graph_summary=self.transform_graph_summary(graph_raw if isinstance(graph_raw, dict) else {}),
            processing_summary=self.transform_processing_summary(
                summary_raw if isinstance(summary_raw, dict) else {}
            ),
        )

    def transform_chapter(self, raw: Mapping[str, Any]) -> Chapter:
        content = _str(raw, "content")
        word_count = _int(raw, "word_count") or count_words(content)
        estimated = _int(raw, "estimated_reading_time") or reading_time(word_count)
        quality = _get(raw, "quality_score")
        return Chapter(
            id=_str(raw, "id"),
            title=_str(raw, "title"),
            content=content,
            quality_score=quality if _finite(quality) else None,
            themes=_str_list(raw, "themes"),
            participants=_str_list(raw, "participants"),
            temporal_markers=_str_list(raw, "temporal_markers"),
            word_count=word_count,
            estimated_reading_time=estimated,
        )

    def transform_question(self, raw: Mapping[str, Any]) -> FollowupQuestion:
        return FollowupQuestion(
            id=_str(raw, "id"),
            category=_str(raw, "category"),
            question=_str(raw, "question"),
            context=_str(raw, "context"),
            priority_score=_number(raw, "priority_score"),
            reasoning=_str(raw, "reasoning"),
            suggested_answers=_str_list(raw, "suggested_answers"),
        )

    def transform_storyline(self, raw: Mapping[str, Any]) -> Storyline:
        range_raw = _get(raw, "temporal_range", {})
        if not isinstance(range_raw, dict):
            range_raw = {}
        return Storyline(
            id=_str(raw, "id"),
            title=_str(raw, "title"),
            description=_str(raw, "description"),
            chapters=_str_list(raw, "chapters"),
            temporal_range=TemporalRange(start=_str(range_raw, "start"), end=_str(range_raw, "end")),
            confidence=_number(raw, "confidence"),
        )

    def transform_graph_summary(self, raw: Mapping[str, Any]) -> GraphSummary:
        return GraphSummary(
            total_nodes=_int(raw, "total_nodes"),
            total_edges=_int(raw, "total_edges"),
            main_storylines=_int(raw, "main_storylines"),
            temporal_span=_str(raw, "temporal_span"),
            key_themes=_str_list(raw, "key_themes"),
        )

    def transform_processing_summary(self, raw: Mapping[str, Any]) -> ProcessingSummary:
        return ProcessingSummary(
            total_processing_time=_str(raw, "total_processing_time"),
            audio_files_processed=_int(raw, "audio_files_processed"),
            transcription_accuracy=_number(raw, "transcription_accuracy"),
            chapters_generated=_int(raw, "chapters_generated"),
            words_generated=_int(raw, "words_generated"),
            ai_agents_used=_str_list(raw, "ai_agents_used"),
        )
