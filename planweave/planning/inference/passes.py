"""Heuristic passes proposing dependency edges between tasks.

Each pass looks at the tasks (with the dependencies earlier passes
added) and returns candidate edges. Passes never remove edges.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol, runtime_checkable

from pydantic import Field

from planweave.core.models import StrictBaseModel
from planweave.planning.models import PlanTask, TaskInfoFlow

from .config import DependencyInferenceConfig
from .vocabulary import InferenceVocabulary

logger = logging.getLogger(__name__)


class CandidateEdge(StrictBaseModel):
    """A dependency proposed by one pass."""

    dependent: str = Field(..., description="ID of the task that must wait")
    dependency: str = Field(..., description="ID of the task that must complete first")
    certainty: float = Field(..., ge=0.0, le=1.0, description="Confidence of the pass in this edge")
    rationale: str = Field(..., description="Which pass proposed the edge and why")


class InferenceContext(StrictBaseModel):
    """Inputs shared by all passes of one inference run."""

    narrative: str | None = Field(default=None, description="Free text describing the intended flow")
    vocabulary: InferenceVocabulary = Field(default_factory=InferenceVocabulary, description="Word lists")
    config: DependencyInferenceConfig = Field(
        default_factory=DependencyInferenceConfig, description="Engine configuration"
    )


@runtime_checkable
class InferencePass(Protocol):
    """A heuristic proposing dependency edges."""

    name: str

    def infer(self, tasks: list[PlanTask], context: InferenceContext) -> list[CandidateEdge]:
        """Propose edges for the given tasks."""
        ...


class NarrativePatternPass:
    """Links tasks using ordering phrases in the narrative and producer/consumer wording.

    A task mentioned in the narrative and followed, within a few words, by
    a dependency phrase ("after", "based on", ...) depends on every other
    task whose description overlaps the clause after the phrase. Tasks
    worded as consumers ("using the", "based on", ...) depend on tasks
    worded as producers ("research", "collect", ...). The pass is skipped
    when there is no narrative.
    """

    name = "narrative"

    def __init__(self, certainty: float = 0.9, role_certainty: float = 0.75):
        self.certainty = certainty
        self.role_certainty = role_certainty

    def infer(self, tasks: list[PlanTask], context: InferenceContext) -> list[CandidateEdge]:
        if not context.narrative:
            return []

        vocabulary = context.vocabulary
        text = context.narrative.lower()
        candidates: list[CandidateEdge] = []

        for task in tasks:
            description = task.description.lower().strip()
            if not description:
                continue

            for phrase in vocabulary.dependency_phrases:
                clause = self._clause_after(text, description, phrase, vocabulary.narrative_window)
                if not clause:
                    continue
                for other in tasks:
                    if other.id == task.id:
                        continue
                    other_description = other.description.lower().strip()
                    if other_description and (clause in other_description or other_description in clause):
                        candidates.append(
                            CandidateEdge(
                                dependent=task.id,
                                dependency=other.id,
                                certainty=self.certainty,
                                rationale=f"{self.name}: '{phrase}'",
                            )
                        )

            if any(phrase in description for phrase in vocabulary.consumer_phrases):
                for other in tasks:
                    if other.id == task.id:
                        continue
                    if any(word in other.description.lower() for word in vocabulary.producer_words):
                        candidates.append(
                            CandidateEdge(
                                dependent=task.id,
                                dependency=other.id,
                                certainty=self.role_certainty,
                                rationale=f"{self.name}: consumer of producer output",
                            )
                        )

        return candidates

    @staticmethod
    def _clause_after(text: str, description: str, phrase: str, window: int) -> str | None:
        """Return the clause following ``phrase`` near a mention of ``description``."""
        pattern = re.compile(
            rf"{re.escape(description)}\s*(?:\w+\s+){{0,{window}}}\b{re.escape(phrase)}\s+([^.,;]+)"
        )
        match = pattern.search(text)
        if not match:
            return None
        return match.group(1).strip() or None


class StageHierarchyPass:
    """Links later-stage tasks to earlier-stage tasks sharing a keyword."""

    name = "stage_hierarchy"

    def __init__(self, certainty: float = 0.7):
        self.certainty = certainty

    def infer(self, tasks: list[PlanTask], context: InferenceContext) -> list[CandidateEdge]:
        vocabulary = context.vocabulary
        stages = {task.id: vocabulary.stage_of(task.description) for task in tasks}
        keywords = {task.id: vocabulary.keywords(task.description) for task in tasks}
        candidates: list[CandidateEdge] = []

        for task in tasks:
            for other in tasks:
                if other.id == task.id or stages[other.id] >= stages[task.id]:
                    continue
                shared = [
                    word
                    for word in keywords[task.id]
                    if word in keywords[other.id] and len(word) >= vocabulary.min_shared_keyword_length
                ]
                if shared:
                    candidates.append(
                        CandidateEdge(
                            dependent=task.id,
                            dependency=other.id,
                            certainty=self.certainty,
                            rationale=(
                                f"{self.name}: stage {stages[task.id]} after {stages[other.id]}, "
                                f"shared '{shared[0]}'"
                            ),
                        )
                    )
        return candidates


class InformationFlowPass:
    """Links tasks consuming an information type to tasks producing it."""

    name = "information_flow"

    def __init__(self, certainty: float = 0.8):
        self.certainty = certainty

    @staticmethod
    def information_flow(task: PlanTask, vocabulary: InferenceVocabulary) -> TaskInfoFlow:
        """Tag the information types a task produces and consumes."""
        text = task.description.lower()
        produces = frozenset(
            info_type
            for info_type in vocabulary.information_types
            if any(f"{verb} {info_type}" in text for verb in vocabulary.producer_verbs)
        )
        consumes = frozenset(
            info_type
            for info_type in vocabulary.information_types
            if any(f"{word} {info_type}" in text for word in vocabulary.consumer_prepositions)
        )
        return TaskInfoFlow(task_id=task.id, produces=produces, consumes=consumes)

    def infer(self, tasks: list[PlanTask], context: InferenceContext) -> list[CandidateEdge]:
        flows = [self.information_flow(task, context.vocabulary) for task in tasks]
        candidates: list[CandidateEdge] = []

        for consumer in flows:
            if not consumer.consumes:
                continue
            for producer in flows:
                if producer.task_id == consumer.task_id:
                    continue
                shared = consumer.consumes & producer.produces
                if shared:
                    candidates.append(
                        CandidateEdge(
                            dependent=consumer.task_id,
                            dependency=producer.task_id,
                            certainty=self.certainty,
                            rationale=f"{self.name}: {', '.join(sorted(shared))}",
                        )
                    )
        return candidates


class ContentSimilarityPass:
    """Orders unlinked pairs of similar tasks by their estimated workflow position."""

    name = "content_similarity"

    def __init__(self, certainty: float = 0.6):
        self.certainty = certainty

    def infer(self, tasks: list[PlanTask], context: InferenceContext) -> list[CandidateEdge]:
        vocabulary = context.vocabulary
        threshold = context.config.similarity_threshold
        linked = {(task.id, dependency) for task in tasks for dependency in task.dependencies}
        keywords = {task.id: set(vocabulary.keywords(task.description)) for task in tasks}
        candidates: list[CandidateEdge] = []

        for index, first in enumerate(tasks):
            for second in tasks[index + 1:]:
                union = keywords[first.id] | keywords[second.id]
                if not union:
                    continue
                similarity = len(keywords[first.id] & keywords[second.id]) / len(union)
                if similarity <= threshold:
                    continue
                if (first.id, second.id) in linked or (second.id, first.id) in linked:
                    continue

                first_position = vocabulary.sequence_position(first.description)
                second_position = vocabulary.sequence_position(second.description)
                if first_position == second_position:
                    continue
                later, earlier = (first, second) if first_position > second_position else (second, first)
                logger.debug(
                    f"Similarity {similarity:.2f} between '{first.description}' and '{second.description}'"
                )
                linked.add((later.id, earlier.id))
                candidates.append(
                    CandidateEdge(
                        dependent=later.id,
                        dependency=earlier.id,
                        certainty=self.certainty,
                        rationale=f"{self.name}: {similarity:.2f}",
                    )
                )
        return candidates
