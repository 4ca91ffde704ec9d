"""Configuration of the dependency inference engine."""

from __future__ import annotations

from pydantic import Field

from planweave.core.models import StrictBaseModel
from planweave.core.settings import PlanweaveSettings


class DependencyInferenceConfig(StrictBaseModel):
    """Which passes run and how their output is filtered."""

    enable_content_similarity: bool = Field(default=True, description="Run the content-similarity pass")
    enable_type_hierarchy: bool = Field(default=True, description="Run the stage-hierarchy pass")
    enable_information_flow: bool = Field(default=True, description="Run the information-flow pass")
    min_dependency_certainty: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Candidate edges below this certainty are discarded"
    )
    max_dependencies_per_task: int = Field(
        default=3, ge=1, description="Dependencies kept per task, in discovery order"
    )
    similarity_threshold: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Keyword similarity above which tasks are linked"
    )

    @classmethod
    def from_settings(cls, settings: PlanweaveSettings) -> DependencyInferenceConfig:
        """Build the inference configuration from runtime settings."""
        return cls(
            enable_content_similarity=settings.enable_content_similarity,
            enable_type_hierarchy=settings.enable_type_hierarchy,
            enable_information_flow=settings.enable_information_flow,
            min_dependency_certainty=settings.min_dependency_certainty,
            max_dependencies_per_task=settings.max_dependencies_per_task,
            similarity_threshold=settings.similarity_threshold,
        )
