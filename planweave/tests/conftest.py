"""Shared fixtures for planweave tests."""

import pytest

from planweave.core.activity_stream import ActivityStream
from planweave.core.settings import PlanweaveSettings

from .fakes import MockOutputHandler


@pytest.fixture
def output_handler():
    """Collecting activity output handler."""
    return MockOutputHandler()


@pytest.fixture
def activity(output_handler):
    """Activity stream writing to the collecting handler."""
    return ActivityStream(output_handler=output_handler)


@pytest.fixture
def settings():
    """Settings independent of the environment."""
    return PlanweaveSettings(
        default_strategy="sequential",
        max_parallel_tasks=3,
        max_replans=3,
        vocabulary_file=None,
        task_timeout_seconds=None,
    )
