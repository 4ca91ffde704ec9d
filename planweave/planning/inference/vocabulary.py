"""Lookup tables used by the dependency inference passes.

The default vocabulary holds the built-in English word lists. A
different vocabulary can be passed to the engine, or loaded from a YAML
file whose keys override the defaults.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import Field

from planweave.core.errors import ConfigurationError
from planweave.core.models import StrictBaseModel
from planweave.core.settings import read_config_file

_WORD_SPLIT = re.compile(r"[^\w]")


class StageFallback(StrictBaseModel):
    """Keywords that place a task in a stage when no stage name matches."""

    keywords: list[str] = Field(..., description="Keywords checked by substring")
    stage: int = Field(..., ge=1, description="Stage assigned on match")


class InferenceVocabulary(StrictBaseModel):
    """Word lists and stage tables driving the heuristic passes."""

    stage_keywords: dict[str, int] = Field(
        default_factory=lambda: {
            "research": 1,
            "data-gathering": 1,
            "search": 1,
            "analysis": 2,
            "evaluation": 2,
            "interpretation": 2,
            "planning": 3,
            "design": 3,
            "writing": 4,
            "implementation": 4,
            "creation": 4,
            "review": 5,
            "testing": 5,
            "validation": 5,
            "refinement": 6,
            "finalization": 7,
        },
        description="Stage name keyword to pipeline stage (1 = earliest)",
    )
    stage_fallbacks: list[StageFallback] = Field(
        default_factory=lambda: [
            StageFallback(keywords=["find", "search", "gather"], stage=1),
            StageFallback(keywords=["analyze", "examine"], stage=2),
            StageFallback(keywords=["write", "create", "develop"], stage=4),
            StageFallback(keywords=["review", "test", "check"], stage=5),
        ],
        description="Checked in order when no stage keyword matches",
    )
    default_stage: int = Field(default=3, ge=1, description="Stage of tasks matching nothing")
    stop_words: list[str] = Field(
        default_factory=lambda: [
            "the", "and", "for", "with", "this", "that", "from", "then", "than",
            "each", "have", "what", "will", "about", "when", "where", "which",
            "their", "there", "would", "could", "should", "these", "those", "other",
        ],
        description="Words never treated as keywords",
    )
    min_keyword_length: int = Field(default=4, ge=1, description="Shortest word kept as a keyword")
    min_shared_keyword_length: int = Field(
        default=5, ge=1, description="Shortest shared keyword linking tasks of different stages"
    )
    dependency_phrases: list[str] = Field(
        default_factory=lambda: [
            "depends on", "after", "following", "based on", "using", "utilizing",
            "with input from", "building on", "extending", "requires", "needs",
            "once", "when", "subsequent to",
        ],
        description="Narrative phrases introducing a prerequisite",
    )
    narrative_window: int = Field(
        default=5, ge=0, description="Words allowed between a task mention and a dependency phrase"
    )
    consumer_phrases: list[str] = Field(
        default_factory=lambda: ["using the", "based on", "with the results", "analyze the"],
        description="Phrases marking a task as consuming earlier output",
    )
    producer_words: list[str] = Field(
        default_factory=lambda: ["research", "collect", "gather", "find", "identify", "search"],
        description="Words marking a task as producing input for others",
    )
    information_types: list[str] = Field(
        default_factory=lambda: [
            "data", "research", "analysis", "results", "findings", "report",
            "documentation", "design", "requirements", "feedback", "metrics",
            "recommendations", "insights",
        ],
        description="Information types exchanged between tasks",
    )
    producer_verbs: list[str] = Field(
        default_factory=lambda: ["generate", "create", "produce", "develop", "write", "prepare", "compile"],
        description="Verbs that produce an information type",
    )
    consumer_prepositions: list[str] = Field(
        default_factory=lambda: ["using", "based on", "from", "analyze", "review", "with"],
        description="Words that consume an information type",
    )
    early_words: list[str] = Field(
        default_factory=lambda: ["initial", "first", "begin", "start", "research", "gather", "plan"],
        description="Words pulling a task toward the start of a workflow",
    )
    late_words: list[str] = Field(
        default_factory=lambda: ["review", "finalize", "test", "evaluate", "polish", "refine", "final"],
        description="Words pushing a task toward the end of a workflow",
    )

    @classmethod
    def from_yaml(cls, path: Path | str) -> InferenceVocabulary:
        """Load a vocabulary from a YAML file, falling back to defaults per key.

        Raises:
            ConfigurationError: If the file cannot be read or is invalid
        """
        path = Path(path)
        data = read_config_file(path)
        values = cls().model_dump()
        values.update(data)
        try:
            values["stage_fallbacks"] = [StageFallback(**item) for item in values["stage_fallbacks"]]
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigurationError.for_file(f"Invalid vocabulary file {path}", path, e) from e

    def keywords(self, text: str) -> list[str]:
        """Extract keywords: lower-cased words long enough and not stop words."""
        stop_words = set(self.stop_words)
        return [
            word
            for word in _WORD_SPLIT.split(text.lower())
            if len(word) >= self.min_keyword_length and word not in stop_words
        ]

    def stage_of(self, description: str) -> int:
        """Classify a description into a pipeline stage.

        The lowest stage whose keyword occurs wins; fallback keywords are
        consulted only when no stage keyword occurs.
        """
        text = description.lower()
        matches = [stage for keyword, stage in self.stage_keywords.items() if keyword in text]
        if matches:
            return min(matches)
        for fallback in self.stage_fallbacks:
            if any(keyword in text for keyword in fallback.keywords):
                return fallback.stage
        return self.default_stage

    def sequence_position(self, description: str) -> int:
        """Estimate where a task sits in a generic workflow, from 1 to 10."""
        text = description.lower()
        position = 5
        position -= 2 * sum(1 for word in self.early_words if word in text)
        position += 2 * sum(1 for word in self.late_words if word in text)
        return max(1, min(10, position))
