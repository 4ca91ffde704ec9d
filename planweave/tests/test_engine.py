"""Tests for the dependency inference engine."""

from planweave.core.activity_stream import ActivityType
from planweave.planning import graph
from planweave.planning.inference.config import DependencyInferenceConfig
from planweave.planning.inference.engine import DependencyInferenceEngine
from planweave.planning.inference.passes import (
    CandidateEdge,
    ContentSimilarityPass,
    InformationFlowPass,
    NarrativePatternPass,
    StageHierarchyPass,
)
from planweave.planning.models import DependencyEdge, PlanTask


def task(task_id: str, description: str) -> PlanTask:
    return PlanTask(id=task_id, description=description)


class StaticPass:
    """Pass returning fixed candidates."""

    name = "static"

    def __init__(self, candidates: list[CandidateEdge]):
        self.candidates = candidates

    def infer(self, tasks, context):
        return list(self.candidates)


class TestResearchPipeline:
    """Test a research, analysis and writing pipeline with a narrative."""

    tasks = [
        task("a", "Research X"),
        task("b", "Analyze X using research"),
        task("c", "Write report based on analysis"),
    ]
    narrative = (
        "Research X first. Analyze X using research after research X. "
        "Write report based on analysis after analyze X using research."
    )

    def test_dependencies(self):
        """Test analysis follows research and writing follows analysis."""
        result = DependencyInferenceEngine().infer(self.tasks, narrative=self.narrative)
        dependencies = {t.id: t.dependencies for t in result.tasks}

        assert dependencies == {"a": [], "b": ["a"], "c": ["b", "a"]}
        assert result.removed_edges == []

    def test_graph(self):
        """Test the graph is acyclic with the full chain as critical path."""
        result = DependencyInferenceEngine().infer(self.tasks, narrative=self.narrative)

        assert DependencyEdge(source="a", target="b") in result.graph.edges
        assert DependencyEdge(source="b", target="c") in result.graph.edges
        assert graph.is_acyclic(result.tasks)
        assert result.graph.critical_path == ["a", "b", "c"]

    def test_candidates_record_rationale(self):
        """Test accepted candidates keep the proposing pass."""
        result = DependencyInferenceEngine().infer(self.tasks, narrative=self.narrative)

        assert [(c.dependent, c.dependency) for c in result.candidates] == [("b", "a"), ("c", "b"), ("c", "a")]
        assert all(c.rationale.startswith("narrative") for c in result.candidates)

    def test_input_not_modified(self):
        """Test inference returns new task values."""
        DependencyInferenceEngine().infer(self.tasks, narrative=self.narrative)

        assert all(t.dependencies == [] for t in self.tasks)

    def test_infer_dependencies(self):
        """Test the task-only entry point."""
        tasks = DependencyInferenceEngine().infer_dependencies(self.tasks, narrative=self.narrative)

        assert [t.dependencies for t in tasks] == [[], ["a"], ["b", "a"]]


class TestCycleRemoval:
    """Test narratives describing a cycle."""

    def test_one_edge_removed(self):
        """Test a three-way cyclic narrative loses exactly one edge."""
        tasks = [
            task("alpha", "Build alpha module"),
            task("beta", "Build beta module"),
            task("gamma", "Build gamma module"),
        ]
        narrative = (
            "Build alpha module after build beta module. "
            "Build beta module after build gamma module. "
            "Build gamma module after build alpha module."
        )

        result = DependencyInferenceEngine().infer(tasks, narrative=narrative)

        assert result.removed_edges == [DependencyEdge(source="beta", target="alpha")]
        assert [t.dependencies for t in result.tasks] == [[], ["gamma"], ["alpha"]]
        assert graph.is_acyclic(result.tasks)
        assert result.graph.critical_path == ["alpha", "gamma", "beta"]


class TestDependencyLimit:
    """Test clipping of heavily linked tasks."""

    tasks = [
        task("p1", "Research topic one"),
        task("p2", "Collect samples"),
        task("p3", "Gather interviews"),
        task("p4", "Find sources"),
        task("p5", "Identify experts"),
        task("c", "Summarize using the notes"),
    ]

    def test_clipped_to_three(self):
        """Test a task with five inferred producers keeps the first three."""
        result = DependencyInferenceEngine().infer(self.tasks, narrative="Work plan.")

        assert result.tasks[-1].dependencies == ["p1", "p2", "p3"]
        assert len(result.candidates) == 5

    def test_custom_limit(self):
        """Test the configured limit applies."""
        engine = DependencyInferenceEngine(config=DependencyInferenceConfig(max_dependencies_per_task=1))

        result = engine.infer(self.tasks, narrative="Work plan.")

        assert result.tasks[-1].dependencies == ["p1"]

    def test_certainty_threshold(self):
        """Test candidates below the certainty threshold are discarded."""
        engine = DependencyInferenceEngine(config=DependencyInferenceConfig(min_dependency_certainty=0.8))

        result = engine.infer(self.tasks, narrative="Work plan.")

        assert result.tasks[-1].dependencies == []
        assert result.candidates == []


class TestPassSelection:
    """Test pass configuration."""

    def test_default_passes(self):
        """Test all passes run in order by default."""
        passes = DependencyInferenceEngine.default_passes(DependencyInferenceConfig())

        assert [type(p) for p in passes] == [
            NarrativePatternPass,
            StageHierarchyPass,
            InformationFlowPass,
            ContentSimilarityPass,
        ]

    def test_disabled_passes(self):
        """Test disabled passes are left out; the narrative pass always runs."""
        config = DependencyInferenceConfig(
            enable_content_similarity=False, enable_type_hierarchy=False, enable_information_flow=False
        )

        assert [type(p) for p in DependencyInferenceEngine.default_passes(config)] == [NarrativePatternPass]

    def test_custom_passes_filtered(self):
        """Test self edges, unknown ids and duplicates are dropped."""
        candidates = [
            CandidateEdge(dependent="b", dependency="a", certainty=0.9, rationale="static"),
            CandidateEdge(dependent="b", dependency="b", certainty=0.9, rationale="static"),
            CandidateEdge(dependent="b", dependency="zzz", certainty=0.9, rationale="static"),
            CandidateEdge(dependent="b", dependency="a", certainty=0.9, rationale="again"),
        ]
        engine = DependencyInferenceEngine(passes=[StaticPass(candidates)])

        result = engine.infer([task("a", "First"), task("b", "Second")])

        assert result.tasks[1].dependencies == ["a"]
        assert len(result.candidates) == 1

    def test_no_edges_without_signals(self):
        """Test unrelated tasks stay independent."""
        result = DependencyInferenceEngine().infer([task("a", "Buy milk"), task("b", "Walk dog")])

        assert result.graph.edges == []
        assert result.graph.critical_path == ["a"]


class TestEngineOutput:
    """Test visualization and activity reporting."""

    def test_visualize(self):
        """Test the engine renders annotated tasks."""
        tasks = [task("a", "Research X"), PlanTask(id="b", description="Analyze X", dependencies=["a"])]

        text = DependencyInferenceEngine().visualize(tasks)

        assert text.startswith("Dependency Graph:\n")
        assert '- "Analyze X" depends on:\n  - "Research X"' in text

    def test_build_graph(self):
        """Test building the graph of annotated tasks."""
        tasks = [task("a", "Research X"), PlanTask(id="b", description="Analyze X", dependencies=["a"])]

        assert DependencyInferenceEngine().build_graph(tasks).critical_path == ["a", "b"]

    def test_activity_stream(self, activity):
        """Test an inference event is streamed."""
        engine = DependencyInferenceEngine(activity_stream=activity)

        engine.infer(TestResearchPipeline.tasks, narrative=TestResearchPipeline.narrative)

        assert activity.messages(ActivityType.INFERENCE) == ["Inferred 3 dependencies"]
