"""Fire-and-forget progress notifications for planning and execution."""

import json
import logging
from collections import deque
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any, TypedDict

from planweave.utils.formatting import indent_lines

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER = 1000


class ActivityType(Enum):
    """Types of planner activities."""

    PLANNING = "🧠 Planning"
    INFERENCE = "🔗 Inference"
    EXECUTION = "⚡ Execution"
    TASK_UPDATE = "✅ Task Update"
    REPLANNING = "🔁 Replanning"
    SUMMARY = "📝 Summary"
    ERROR = "❌ Error"


class ActivityEntry(TypedDict):
    """Type definition for activity buffer entries."""

    timestamp: datetime
    type: ActivityType
    message: str
    details: dict[str, Any] | None


class ActivityStream:
    """Streams planner activities to an output handler.

    Delivery is best-effort: a failing output handler is logged and the
    activity is dropped, never raised into the caller.
    """

    def __init__(
        self,
        output_handler: Callable[[str], None] | None = None,
        verbose: bool = True,
        max_buffer: int = DEFAULT_MAX_BUFFER,
    ):
        """Initialize activity stream.

        Args:
            output_handler: Callback receiving each formatted activity line
            verbose: Whether activity details are included in the output
            max_buffer: Number of recent activities kept, older ones are dropped
        """
        if max_buffer < 1:
            raise ValueError("max_buffer must be at least 1")
        self.output_handler = output_handler or print
        self.verbose = verbose
        self.activity_buffer: deque[ActivityEntry] = deque(maxlen=max_buffer)

    def clear(self) -> None:
        """Drop all buffered activities."""
        self.activity_buffer.clear()

    def messages(self, activity_type: ActivityType | None = None) -> list[str]:
        """Return buffered messages, optionally filtered by type."""
        return [
            entry["message"]
            for entry in self.activity_buffer
            if activity_type is None or entry["type"] is activity_type
        ]

    def _format_activity(
        self, activity_type: ActivityType, message: str, details: dict[str, Any] | None = None
    ) -> str:
        """Format an activity message.

        Args:
            activity_type: Type of activity
            message: Main activity message
            details: Optional details dictionary

        Returns:
            Formatted activity string
        """
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        lines = [f"[{timestamp}] {activity_type.value}: {message}"]

        if details and self.verbose:
            for key, value in details.items():
                if isinstance(value, dict):
                    value_str = json.dumps(value, indent=2, default=str)
                    value_str = indent_lines(value_str, "    ")
                elif isinstance(value, list) and len(value) > 3:
                    value_str = f"[{len(value)} items]"
                else:
                    value_str = str(value)

                lines.append(f"  → {key}: {value_str}")

        return "\n".join(lines)

    def stream(
        self, activity_type: ActivityType, message: str, details: dict[str, Any] | None = None
    ) -> None:
        """Stream an activity.

        Args:
            activity_type: Type of activity
            message: Activity message
            details: Optional activity details
        """
        self.activity_buffer.append(
            {
                "timestamp": datetime.now(),
                "type": activity_type,
                "message": message,
                "details": details,
            }
        )

        try:
            self.output_handler(self._format_activity(activity_type, message, details))
        except Exception as e:
            logger.warning(f"Activity output handler failed: {e}")

    # Convenience methods for common activities

    def planning(self, message: str, **details: Any) -> None:
        """Stream a planning activity."""
        self.stream(ActivityType.PLANNING, message, details)

    def inference(self, message: str, **details: Any) -> None:
        """Stream a dependency inference activity."""
        self.stream(ActivityType.INFERENCE, message, details)

    def execution(self, action: str, **details: Any) -> None:
        """Stream an execution activity."""
        self.stream(ActivityType.EXECUTION, action, details)

    def task_update(self, task_id: str, status: str, **details: Any) -> None:
        """Stream a task status change."""
        detail_dict: dict[str, Any] = {"id": task_id, "status": status}
        detail_dict.update(details)
        self.stream(ActivityType.TASK_UPDATE, f"Task {task_id[:8]} → {status}", detail_dict)

    def replanning(self, message: str, **details: Any) -> None:
        """Stream a replanning activity."""
        self.stream(ActivityType.REPLANNING, message, details)

    def summary(self, message: str, **details: Any) -> None:
        """Stream a summary activity."""
        self.stream(ActivityType.SUMMARY, message, details)

    def error(self, error: str, **details: Any) -> None:
        """Stream an error activity."""
        self.stream(ActivityType.ERROR, error, details)


# Global activity stream instance
activity_stream = ActivityStream()
