"""Dependency inference orchestrator.

Runs the heuristic passes in order, discards low-certainty candidates,
breaks cycles, clips dependency counts and computes the critical path.
"""

from __future__ import annotations

import logging

from pydantic import Field

from planweave.core.activity_stream import ActivityStream
from planweave.core.models import StrictBaseModel
from planweave.planning import graph
from planweave.planning.models import DependencyEdge, DependencyGraph, PlanTask

from .config import DependencyInferenceConfig
from .passes import (
    CandidateEdge,
    ContentSimilarityPass,
    InferenceContext,
    InferencePass,
    InformationFlowPass,
    NarrativePatternPass,
    StageHierarchyPass,
)
from .vocabulary import InferenceVocabulary


class InferenceResult(StrictBaseModel):
    """Outcome of one inference run."""

    tasks: list[PlanTask] = Field(..., description="Tasks with inferred dependencies")
    graph: DependencyGraph = Field(..., description="Final acyclic dependency graph")
    removed_edges: list[DependencyEdge] = Field(
        default_factory=list, description="Edges removed to break cycles"
    )
    candidates: list[CandidateEdge] = Field(
        default_factory=list, description="Accepted candidate edges in discovery order"
    )


class DependencyInferenceEngine:
    """Infers dependencies between the tasks of a plan.

    Passes run in a fixed order and only add edges:

    1. narrative patterns (only with narrative text)
    2. stage hierarchy
    3. information flow
    4. content similarity

    Passes 2-4 can be switched off through the configuration, and a custom
    pass list can replace the defaults entirely.
    """

    def __init__(
        self,
        config: DependencyInferenceConfig | None = None,
        vocabulary: InferenceVocabulary | None = None,
        passes: list[InferencePass] | None = None,
        activity_stream: ActivityStream | None = None,
    ):
        """Initialize the engine.

        Args:
            config: Engine configuration, defaults apply when omitted
            vocabulary: Word lists used by the passes
            passes: Pass list replacing the configured defaults
            activity_stream: Optional progress channel
        """
        self.config = config or DependencyInferenceConfig()
        self.vocabulary = vocabulary or InferenceVocabulary()
        self.passes = passes if passes is not None else self.default_passes(self.config)
        self._activity_stream = activity_stream
        self._logger = logging.getLogger(f"{__name__}.dependency_inference")

    @staticmethod
    def default_passes(config: DependencyInferenceConfig) -> list[InferencePass]:
        """Build the pass list enabled by the configuration."""
        passes: list[InferencePass] = [NarrativePatternPass()]
        if config.enable_type_hierarchy:
            passes.append(StageHierarchyPass())
        if config.enable_information_flow:
            passes.append(InformationFlowPass())
        if config.enable_content_similarity:
            passes.append(ContentSimilarityPass())
        return passes

    def infer(self, tasks: list[PlanTask], narrative: str | None = None) -> InferenceResult:
        """Infer dependencies between tasks.

        Args:
            tasks: Tasks of one plan, normally without dependencies
            narrative: Optional free text describing the intended order

        Returns:
            Tasks with dependencies, the final graph and the removed edges
        """
        self._logger.debug(f"Inferring dependencies between {len(tasks)} tasks")
        context = InferenceContext(narrative=narrative, vocabulary=self.vocabulary, config=self.config)
        known = {task.id for task in tasks}
        current = list(tasks)
        accepted: list[CandidateEdge] = []

        for inference_pass in self.passes:
            candidates = inference_pass.infer(current, context)
            current, added = self._apply(current, candidates, known)
            accepted.extend(added)
            if added:
                self._logger.debug(f"Pass '{inference_pass.name}' added {len(added)} dependencies")

        current, removed = graph.break_cycles(current)
        if removed:
            self._logger.debug(f"Removed {len(removed)} edges to break dependency cycles")

        current = graph.limit_dependencies(current, self.config.max_dependencies_per_task)
        dependency_graph = graph.build_graph(current)

        if self._activity_stream:
            self._activity_stream.inference(
                f"Inferred {len(dependency_graph.edges)} dependencies",
                removed=len(removed),
                critical_path=len(dependency_graph.critical_path),
            )

        return InferenceResult(
            tasks=current,
            graph=dependency_graph,
            removed_edges=removed,
            candidates=accepted,
        )

    def infer_dependencies(self, tasks: list[PlanTask], narrative: str | None = None) -> list[PlanTask]:
        """Infer dependencies and return only the updated tasks."""
        return self.infer(tasks, narrative).tasks

    def build_graph(self, tasks: list[PlanTask]) -> DependencyGraph:
        """Build the dependency graph of already annotated tasks."""
        return graph.build_graph(tasks)

    def visualize(self, tasks: list[PlanTask]) -> str:
        """Render the dependency graph of already annotated tasks as text."""
        return graph.render_dependency_graph(tasks)

    def _apply(
        self, tasks: list[PlanTask], candidates: list[CandidateEdge], known: set[str]
    ) -> tuple[list[PlanTask], list[CandidateEdge]]:
        """Add accepted candidates to the tasks' dependency lists.

        Candidates below the certainty threshold, self edges, edges to
        unknown tasks and edges already present are skipped.
        """
        dependencies = {task.id: list(task.dependencies) for task in tasks}
        added: list[CandidateEdge] = []

        for candidate in candidates:
            if candidate.certainty < self.config.min_dependency_certainty:
                continue
            if candidate.dependent == candidate.dependency:
                continue
            if candidate.dependent not in known or candidate.dependency not in known:
                continue
            if candidate.dependency in dependencies[candidate.dependent]:
                continue
            dependencies[candidate.dependent].append(candidate.dependency)
            added.append(candidate)
            self._logger.debug(
                f"Added dependency {candidate.dependent} -> {candidate.dependency} ({candidate.rationale})"
            )

        if not added:
            return tasks, added
        updated = [
            task if len(dependencies[task.id]) == len(task.dependencies) else task.with_dependencies(dependencies[task.id])
            for task in tasks
        ]
        return updated, added
