"""Configuration management."""

from .settings import PlanweaveSettings, StrategyName, load_settings, read_config_file

__all__ = ["PlanweaveSettings", "StrategyName", "load_settings", "read_config_file"]
