"""
Test suite for planweave.

Covers the core layer (errors, settings, activity stream), the planning
models and graph transforms, dependency inference, parsing, prompts,
scheduling, the plan executor and the command-line interface.
"""

import logging

# Configure test logging
logging.basicConfig(level=logging.WARNING)  # Reduce noise during tests
