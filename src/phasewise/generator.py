"""
Standard task generation for the four-phase workflow.
"""
from typing import List, Optional, Union

from .models import Project, Task, TaskPriority, TaskStatus, PHASE_ORDER
from .templates import TemplateCatalog, load_catalog
from .logs import get_logger

log = get_logger("generator")

def standard_task_id(project_id: str, phase, position: int) -> str:
    """Id of the task at 1-based ``position`` within ``phase``."""
    return f"{project_id}-{phase.value}-{position}"

def generate_standard_tasks(project: Union[Project, str], catalog: Optional[TemplateCatalog] = None) -> List[Task]:
    """
    Build the canonical task list for a project.

    Tasks inside a phase form a chain, and the first task of each phase after
    the first waits on the last task of the phase before it. The result is a
    new list; assigning it to the project is up to the caller.

    Args:
        project: The project, or just its id.
        catalog: Template catalog, the bundled one by default.

    Returns:
        The generated tasks in phase order, then template order.
    """
    project_id = project if isinstance(project, str) else project.id
    catalog = catalog or load_catalog()

    tasks: List[Task] = []
    last_task_id: Optional[str] = None

    for phase in PHASE_ORDER:
        for index, template in enumerate(catalog.phase_templates(phase)):
            dependencies = []
            if index > 0:
                dependencies.append(standard_task_id(project_id, phase, index))
            elif last_task_id is not None:
                dependencies.append(last_task_id)

            task = Task(
                id=standard_task_id(project_id, phase, index + 1),
                title=template.name,
                description=template.description,
                phase=phase,
                status=TaskStatus.NOT_STARTED,
                priority=TaskPriority.MEDIUM,
                dependencies=dependencies,
                progress=0,
                estimated_hours=template.estimated_hours,
                tags=[phase.value],
            )
            tasks.append(task)
            last_task_id = task.id

    log.info(f"Generated {len(tasks)} standard tasks for project {project_id}")
    return tasks
