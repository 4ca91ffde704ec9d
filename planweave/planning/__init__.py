"""Task planning: plan models, dependency inference, scheduling and execution."""
