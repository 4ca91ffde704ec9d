"""Core building blocks: strict models, errors, settings and activity streaming."""
