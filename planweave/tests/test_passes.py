"""Tests for the heuristic inference passes."""

import pytest

from planweave.planning.inference.config import DependencyInferenceConfig
from planweave.planning.inference.passes import (
    ContentSimilarityPass,
    InferenceContext,
    InferencePass,
    InformationFlowPass,
    NarrativePatternPass,
    StageHierarchyPass,
)
from planweave.planning.inference.vocabulary import InferenceVocabulary
from planweave.planning.models import PlanTask

from .fakes import make_tasks


def edges(candidates) -> list[tuple[str, str]]:
    return [(candidate.dependent, candidate.dependency) for candidate in candidates]


class TestPassProtocol:
    """Test the pass protocol."""

    @pytest.mark.parametrize(
        "pass_type", [NarrativePatternPass, StageHierarchyPass, InformationFlowPass, ContentSimilarityPass]
    )
    def test_builtin_passes_satisfy_protocol(self, pass_type):
        """Test every built-in pass is an InferencePass."""
        assert isinstance(pass_type(), InferencePass)


class TestNarrativePatternPass:
    """Test narrative and producer/consumer inference."""

    def test_skipped_without_narrative(self):
        """Test the pass does nothing without narrative text."""
        tasks = make_tasks("Collect survey data", "Summarize using the survey data")

        assert NarrativePatternPass().infer(tasks, InferenceContext()) == []

    def test_dependency_phrase(self):
        """Test a phrase after a task mention links to the clause's task."""
        tasks = make_tasks("Research the market", "Write the report")
        context = InferenceContext(narrative="Write the report after research the market.")

        candidates = NarrativePatternPass().infer(tasks, context)

        assert edges(candidates) == [("t2", "t1")]
        assert candidates[0].certainty == 0.9
        assert candidates[0].rationale == "narrative: 'after'"

    def test_clause_contained_in_description(self):
        """Test a clause shorter than the other description still matches."""
        tasks = make_tasks("Research the market thoroughly", "Write the report")
        context = InferenceContext(narrative="Write the report based on research the market.")

        assert edges(NarrativePatternPass().infer(tasks, context)) == [("t2", "t1")]

    def test_word_window(self):
        """Test at most five words may separate the mention and the phrase."""
        tasks = make_tasks("Research the market", "Write the report")
        near = InferenceContext(narrative="Write the report one two three four five after research the market.")
        far = InferenceContext(narrative="Write the report one two three four five six after research the market.")

        assert edges(NarrativePatternPass().infer(tasks, near)) == [("t2", "t1")]
        assert NarrativePatternPass().infer(tasks, far) == []

    def test_consumer_depends_on_producers(self):
        """Test consumer wording links to every producer task."""
        tasks = make_tasks("Collect survey data", "Find old reports", "Summarize using the survey data")
        context = InferenceContext(narrative="Nothing relevant here.")

        candidates = NarrativePatternPass().infer(tasks, context)

        assert edges(candidates) == [("t3", "t1"), ("t3", "t2")]
        assert all(candidate.certainty == 0.75 for candidate in candidates)


class TestStageHierarchyPass:
    """Test stage-ordered inference."""

    def test_later_stage_with_shared_keyword(self):
        """Test a later-stage task depends on an earlier one sharing a keyword."""
        tasks = make_tasks("Research customer churn", "Analyze customer churn trends", "Design logo")

        candidates = StageHierarchyPass().infer(tasks, InferenceContext())

        assert edges(candidates) == [("t2", "t1")]
        assert "shared 'customer'" in candidates[0].rationale

    def test_short_shared_keyword_ignored(self):
        """Test shared keywords of four letters do not link tasks."""
        tasks = make_tasks("Research data", "Analyze data")

        assert StageHierarchyPass().infer(tasks, InferenceContext()) == []

    def test_same_stage_not_linked(self):
        """Test tasks of the same stage are not linked."""
        tasks = make_tasks("Research pricing models", "Search pricing models")

        assert StageHierarchyPass().infer(tasks, InferenceContext()) == []

    def test_custom_vocabulary(self):
        """Test an injected stage table changes the classification."""
        vocabulary = InferenceVocabulary(stage_keywords={"draft": 1, "publish": 2}, stage_fallbacks=[])
        tasks = make_tasks("Publish newsletter issue", "Draft newsletter issue")

        candidates = StageHierarchyPass().infer(tasks, InferenceContext(vocabulary=vocabulary))

        assert edges(candidates) == [("t1", "t2")]


class TestInformationFlowPass:
    """Test produce/consume inference."""

    def test_information_flow(self):
        """Test tagging produced and consumed information types."""
        task = PlanTask(id="t1", description="Prepare report based on findings")

        flow = InformationFlowPass.information_flow(task, InferenceVocabulary())

        assert flow.produces == frozenset({"report"})
        assert flow.consumes == frozenset({"findings"})

    def test_consumer_depends_on_producer(self):
        """Test a consumer links to the producer of the same type."""
        tasks = make_tasks("Review findings", "Compile findings")

        candidates = InformationFlowPass().infer(tasks, InferenceContext())

        assert edges(candidates) == [("t1", "t2")]
        assert candidates[0].rationale == "information_flow: findings"
        assert candidates[0].certainty == 0.8

    def test_no_shared_type(self):
        """Test unrelated types do not link."""
        tasks = make_tasks("Review findings", "Compile metrics")

        assert InformationFlowPass().infer(tasks, InferenceContext()) == []


class TestContentSimilarityPass:
    """Test similarity inference."""

    def test_later_position_depends_on_earlier(self):
        """Test similar tasks are ordered by estimated position."""
        tasks = make_tasks("Final review of the budget spreadsheet", "Initial budget spreadsheet draft")

        candidates = ContentSimilarityPass().infer(tasks, InferenceContext())

        assert edges(candidates) == [("t1", "t2")]
        assert candidates[0].certainty == 0.6

    def test_existing_link_skipped(self):
        """Test pairs already linked in either direction are skipped."""
        first, second = make_tasks("Final review of the budget spreadsheet", "Initial budget spreadsheet draft")
        tasks = [first, second.with_dependencies([first.id])]

        assert ContentSimilarityPass().infer(tasks, InferenceContext()) == []

    def test_equal_positions(self):
        """Test equal positions add nothing."""
        tasks = make_tasks("Budget spreadsheet review", "Budget spreadsheet test")

        assert ContentSimilarityPass().infer(tasks, InferenceContext()) == []

    def test_threshold(self):
        """Test the configured threshold applies."""
        tasks = make_tasks("Final review of the budget spreadsheet", "Initial budget spreadsheet draft")
        context = InferenceContext(config=DependencyInferenceConfig(similarity_threshold=0.5))

        assert ContentSimilarityPass().infer(tasks, context) == []
