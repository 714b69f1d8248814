"""
Aggregated project statistics for dashboards and progress reports.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .models import (
    DashboardStats, PhaseSummary, Project, ResourceUtilization, Task, TaskPriority, TaskStatus,
    PHASE_ORDER, PHASE_NAMES,
)
from .phases import PhaseManager

def count_by_status(tasks: List[Task], status: TaskStatus) -> int:
    return sum(1 for t in tasks if t.status == status)

def upcoming_deadlines(tasks: List[Task], days: int, now: Optional[datetime] = None) -> List[Task]:
    """Unfinished tasks due between now and ``days`` from now, soonest first."""
    now = now or datetime.now()
    threshold = now + timedelta(days=days)
    due = [
        t for t in tasks
        if t.due_date is not None and t.status != TaskStatus.COMPLETED and now <= t.due_date <= threshold
    ]
    return sorted(due, key=lambda t: t.due_date)

def critical_tasks(tasks: List[Task]) -> List[Task]:
    return [
        t for t in tasks
        if t.priority == TaskPriority.CRITICAL and t.status not in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)
    ]

def resource_utilization(tasks: List[Task]) -> Dict[str, ResourceUtilization]:
    utilization: Dict[str, ResourceUtilization] = {}
    for task in tasks:
        if not task.assignee:
            continue
        entry = utilization.setdefault(task.assignee, ResourceUtilization())
        entry.total_tasks += 1
        if task.status == TaskStatus.COMPLETED:
            entry.completed_tasks += 1
        entry.estimated_hours += task.estimated_hours or 0
        entry.actual_hours += task.actual_hours or 0
    return utilization

def phase_summaries(project: Project, phase_manager: PhaseManager) -> List[PhaseSummary]:
    summaries = []
    for phase in PHASE_ORDER:
        phase_tasks = project.tasks_in_phase(phase)
        summaries.append(PhaseSummary(
            phase=phase,
            name=PHASE_NAMES[phase],
            total_tasks=len(phase_tasks),
            completed_tasks=count_by_status(phase_tasks, TaskStatus.COMPLETED),
            progress=phase_manager.calculate_phase_progress(phase, project.tasks),
        ))
    return summaries

def generate_stats(project: Project, phase_manager: PhaseManager,
                   now: Optional[datetime] = None, deadline_days: int = 7) -> DashboardStats:
    """
    Collect the numbers a project dashboard shows.

    Phase records are refreshed first so overall progress reflects the
    current task state.
    """
    phase_manager.refresh_phases(project)
    tasks = project.tasks
    return DashboardStats(
        project_id=project.id,
        total_tasks=len(tasks),
        completed_tasks=count_by_status(tasks, TaskStatus.COMPLETED),
        in_progress_tasks=count_by_status(tasks, TaskStatus.IN_PROGRESS),
        blocked_tasks=count_by_status(tasks, TaskStatus.BLOCKED),
        overall_progress=phase_manager.calculate_overall_progress(project),
        phase_progress={p: phase_manager.calculate_phase_progress(p, tasks) for p in PHASE_ORDER},
        upcoming_deadlines=upcoming_deadlines(tasks, deadline_days, now),
        critical_tasks=critical_tasks(tasks),
        resource_utilization=resource_utilization(tasks),
    )
