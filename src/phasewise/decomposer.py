"""
Task decomposition - expands tasks into sequential subtask chains and rolls
subtask state back up into the parent.
"""
from typing import List, Optional

from .models import Task, TaskPriority, TaskStatus, round_half_up
from .templates import TaskTemplate, TemplateCatalog, generic_subtask_templates, load_catalog
from .logs import get_logger

log = get_logger("decomposer")

class TaskDecomposer:
    """Breaks tasks into subtasks using phase+title templates or a generic split."""

    def __init__(self, catalog: Optional[TemplateCatalog] = None):
        self.catalog = catalog or load_catalog()

    def decompose_task(self, parent: Task, max_subtasks: Optional[int] = None) -> Task:
        """
        Return a copy of ``parent`` with its subtasks populated.

        A task that already has subtasks is returned as is, so running the
        decomposer twice changes nothing.

        Args:
            parent: Task to decompose.
            max_subtasks: Keep only the first N templates; all when None.
        """
        if parent.subtasks:
            return parent

        subtasks = self.generate_subtasks(parent, max_subtasks)
        log.debug(f"Decomposed {parent.id} into {len(subtasks)} subtasks")
        return parent.model_copy(
            update={'subtasks': subtasks, 'progress': self.calculate_progress(subtasks)},
            deep=True,
        )

    def generate_subtasks(self, parent: Task, max_subtasks: Optional[int] = None) -> List[Task]:
        templates = self.get_subtask_templates(parent)
        total = len(templates)
        if max_subtasks is not None:
            templates = templates[:max_subtasks]

        subtasks = []
        for index, template in enumerate(templates):
            subtasks.append(Task(
                id=f"{parent.id}-sub-{index + 1}",
                title=template.name,
                description=template.description,
                phase=parent.phase,
                status=TaskStatus.NOT_STARTED,
                priority=self.derive_priority(parent.priority, index, total),
                dependencies=[f"{parent.id}-sub-{index}"] if index > 0 else [],
                progress=0,
                estimated_hours=template.estimated_hours,
                tags=[*parent.tags, 'subtask'],
            ))
        return subtasks

    def get_subtask_templates(self, parent: Task) -> List[TaskTemplate]:
        """Phase+title specific templates, falling back to the generic four."""
        specific = self.catalog.subtask_templates(parent.phase, parent.title)
        if specific:
            return specific
        return generic_subtask_templates(parent.title, parent.estimated_hours)

    @staticmethod
    def derive_priority(parent_priority: TaskPriority, index: int, total: int) -> TaskPriority:
        if parent_priority == TaskPriority.CRITICAL:
            return TaskPriority.CRITICAL
        if index == 0:
            return parent_priority
        # Wrap-up steps such as completion reports
        if index == total - 1:
            return TaskPriority.LOW
        return parent_priority

    @staticmethod
    def calculate_progress(subtasks: List[Task]) -> int:
        if not subtasks:
            return 0
        return round_half_up(sum(t.progress for t in subtasks) / len(subtasks))

    def update_parent_status(self, parent: Task) -> Task:
        """Return a copy of ``parent`` with status and progress rolled up from its subtasks."""
        if not parent.subtasks:
            return parent

        statuses = [t.status for t in parent.subtasks]
        status = parent.status
        if all(s == TaskStatus.COMPLETED for s in statuses):
            status = TaskStatus.COMPLETED
        elif TaskStatus.BLOCKED in statuses:
            status = TaskStatus.BLOCKED
        elif TaskStatus.IN_PROGRESS in statuses:
            status = TaskStatus.IN_PROGRESS

        return parent.model_copy(update={
            'status': status,
            'progress': self.calculate_progress(parent.subtasks),
        })

    def decompose_recursively(self, task: Task, max_depth: int, current_depth: int = 0,
                              max_subtasks: Optional[int] = None) -> Task:
        """Decompose depth first, stopping ``max_depth`` levels below ``task``."""
        if current_depth >= max_depth:
            return task

        decomposed = self.decompose_task(task, max_subtasks)
        children = [
            self.decompose_recursively(st, max_depth, current_depth + 1, max_subtasks)
            for st in decomposed.subtasks
        ]
        return decomposed.model_copy(update={'subtasks': children})

    def decompose_all(self, tasks: List[Task], max_subtasks: Optional[int] = None) -> List[Task]:
        return [self.decompose_task(t, max_subtasks) for t in tasks]
