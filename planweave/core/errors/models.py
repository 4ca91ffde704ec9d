"""Strict Pydantic models carried by planweave errors."""

from datetime import datetime

from pydantic import Field

from planweave.core.models import StrictBaseModel


class ErrorContextData(StrictBaseModel):
    """Structured context attached to every planweave error."""

    scope: str = Field(..., description="Plan id, or the area of the package when no plan is involved")
    error_type: str = Field(..., description="Type of error")
    error_location: str = Field(..., description="Location in code where error occurred")
    timestamp: datetime = Field(default_factory=datetime.now, description="When error occurred")

    component: str = Field(..., description="Component that raised the error")
    operation: str = Field(..., description="Operation being performed")


class ConfigurationErrorContext(StrictBaseModel):
    """Details about a configuration value that failed to load."""

    config_key: str = Field(..., description="Configuration key that failed")
    config_section: str = Field(..., description="Configuration section")
    expected_type: str = Field(..., description="Expected type of configuration")
    actual_value: str = Field(..., description="Actual value provided")
