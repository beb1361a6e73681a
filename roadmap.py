import math
from typing import Iterable, Iterator

from schemas import Priority, RoadmapResponse, StepType

PRIORITY_BADGES = {
    Priority.HIGH: "🔴 High priority",
    Priority.MEDIUM: "🟠 Medium priority",
    Priority.LOW: "🟢 Low priority",
}

STEP_TYPE_ICONS = {
    StepType.THEORY: "📖",
    StepType.PRACTICE: "✏️",
}


class CompletedSteps:
    """Step numbers the user has checked off."""

    def __init__(self, steps: Iterable[int] = ()):
        self._steps: set[int] = set(steps)

    def toggle(self, step: int) -> bool:
        """Flip membership of a step. Returns True if it is now completed."""
        if step in self._steps:
            self._steps.remove(step)
            return False
        self._steps.add(step)
        return True

    def is_completed(self, step: int) -> bool:
        return step in self._steps

    def clear(self) -> None:
        self._steps.clear()

    def __contains__(self, step: object) -> bool:
        return step in self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._steps))

    def __repr__(self) -> str:
        return f"CompletedSteps({sorted(self._steps)})"


def compute_progress(
    roadmap: RoadmapResponse | None, completed: CompletedSteps
) -> int:
    """Percentage of roadmap steps completed, rounded half up."""
    if roadmap is None or not roadmap.planning:
        return 0
    done = sum(1 for number in roadmap.step_numbers if number in completed)
    return math.floor(100 * done / len(roadmap.planning) + 0.5)


def priority_badge(priority: str) -> str:
    try:
        return PRIORITY_BADGES[Priority(priority)]
    except ValueError:
        return f"Priority {priority}"


def step_type_icon(step_type: str) -> str:
    try:
        return STEP_TYPE_ICONS[StepType(step_type)]
    except ValueError:
        return "📌"
