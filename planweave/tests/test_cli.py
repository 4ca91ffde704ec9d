"""Tests for the dependency inference command line."""

import pytest
import yaml

from planweave.cli import build_config, create_parser, load_tasks, main

DOCUMENT = {
    "tasks": [
        "Research the market",
        {"id": "analysis", "description": "Analyze the market using research"},
        "Write report based on analysis",
    ],
    "narrative": (
        "Research the market first. Analyze the market using research after research the market. "
        "Write report based on analysis after analyze the market using research."
    ),
}


@pytest.fixture
def input_file(tmp_path):
    path = tmp_path / "tasks.yaml"
    path.write_text(yaml.safe_dump(DOCUMENT))
    return path


class TestMain:
    """Test the command-line entry point."""

    def test_prints_graph(self, input_file, capsys):
        """Test a valid document prints the table and the graph."""
        assert main([str(input_file)]) == 0

        output = capsys.readouterr().out
        assert "Inferred Dependencies" in output
        assert "Dependency Graph:" in output
        assert '- "Analyze the market using research" depends on:' in output

    def test_activity_on_stderr(self, input_file, capsys):
        """Test inference activity goes to stderr, with details only when verbose."""
        assert main([str(input_file)]) == 0
        quiet = capsys.readouterr().err

        assert main([str(input_file), "--verbose"]) == 0
        verbose = capsys.readouterr().err

        assert "Inferred" in quiet
        assert "removed" not in quiet
        assert "removed: 0" in verbose

    def test_missing_file(self, tmp_path, capsys):
        """Test a missing input file exits with an error."""
        assert main([str(tmp_path / "missing.yaml")]) == 1
        assert "not found" in " ".join(capsys.readouterr().out.split())

    def test_invalid_tasks(self, tmp_path):
        """Test a document without usable tasks exits with an error."""
        path = tmp_path / "tasks.yaml"
        path.write_text(yaml.safe_dump({"tasks": [42]}))

        assert main([str(path)]) == 1

    def test_invalid_limit(self, input_file):
        """Test an invalid dependency limit exits with an error."""
        assert main([str(input_file), "--max-deps", "0"]) == 1

    def test_unknown_config_key(self, tmp_path):
        """Test unknown inference options are rejected."""
        path = tmp_path / "tasks.yaml"
        path.write_text(yaml.safe_dump({**DOCUMENT, "config": {"max_depth": 2}}))

        assert main([str(path)]) == 1

    def test_vocabulary_file(self, input_file, tmp_path):
        """Test a vocabulary override file is accepted."""
        vocabulary = tmp_path / "vocabulary.yaml"
        vocabulary.write_text("default_stage: 2\n")

        assert main([str(input_file), "--vocabulary", str(vocabulary)]) == 0


class TestHelpers:
    """Test document loading and option merging."""

    def test_load_tasks(self):
        """Test strings and mappings both become tasks."""
        tasks = load_tasks(DOCUMENT)

        assert [t.id for t in tasks] == ["task1", "analysis", "task3"]
        assert tasks[2].description == "Write report based on analysis"

    @pytest.mark.parametrize("document", [{}, {"tasks": []}, {"tasks": "one"}, {"tasks": [{"id": "x"}]}])
    def test_load_tasks_invalid(self, document):
        """Test unusable task entries raise ValueError."""
        with pytest.raises(ValueError):
            load_tasks(document)

    def test_build_config_flags(self):
        """Test command-line flags override the document."""
        args = create_parser().parse_args(["tasks.yaml", "--no-similarity", "--no-flow", "--max-deps", "2"])
        document = {"config": {"max_dependencies_per_task": 5, "similarity_threshold": 0.5}}

        config = build_config(document, args)

        assert config.enable_content_similarity is False
        assert config.enable_information_flow is False
        assert config.enable_type_hierarchy is True
        assert config.max_dependencies_per_task == 2
        assert config.similarity_threshold == 0.5

    def test_build_config_defaults(self):
        """Test a document without options uses defaults."""
        config = build_config({}, create_parser().parse_args(["tasks.yaml"]))

        assert config.max_dependencies_per_task == 3
        assert config.enable_type_hierarchy is True
