"""Project progress aggregation.

Progress is derived from task statuses on every read and never stored.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from taskhub.models.project import TaskStatus


def progress_percentage(completed: int, total: int) -> int:
    """Completed share as a whole percentage, rounded half up.

    Integer arithmetic keeps exact halves (1 of 8 -> 12.5 -> 13) away from
    float error. No tasks means 0, not 100.
    """
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


@dataclass(frozen=True)
class ProjectProgress:
    total_tasks: int
    completed_tasks: int

    @property
    def pending_tasks(self) -> int:
        return self.total_tasks - self.completed_tasks

    @property
    def progress(self) -> int:
        return progress_percentage(self.completed_tasks, self.total_tasks)


def compute_progress(statuses: Iterable[str]) -> ProjectProgress:
    """Aggregate a project's task statuses."""
    total = 0
    completed = 0
    for task_status in statuses:
        total += 1
        if task_status == TaskStatus.DONE.value:
            completed += 1
    return ProjectProgress(total_tasks=total, completed_tasks=completed)
