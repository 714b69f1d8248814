"""
Phase management for the sales → design → manufacturing → construction workflow.

Aggregates task progress into phase records, gates transitions between
phases and computes project-wide progress and the critical path.
"""
import abc
from datetime import datetime
from typing import List, Optional

from .models import (
    Project, PhaseInfo, ProjectPhase, Task, TaskStatus, TransitionResult, WorkflowConfig,
    PHASE_ORDER, PHASE_NAMES, round_half_up,
)
from .graph import TaskGraph
from .logs import get_logger

log = get_logger("phases")

class Approver(abc.ABC):
    """Decides whether a gated phase transition may go ahead."""

    @abc.abstractmethod
    def approve(self, phase: ProjectPhase, approvers: List[str]) -> bool:
        """
        Ask ``approvers`` to sign off entering ``phase``.

        Returns:
            True to allow the transition, False to reject it.
        """
        pass

def next_phase(phase: ProjectPhase) -> Optional[ProjectPhase]:
    """The phase after ``phase``, or None for the last one."""
    index = PHASE_ORDER.index(phase)
    if index == len(PHASE_ORDER) - 1:
        return None
    return PHASE_ORDER[index + 1]

def phase_name(phase: ProjectPhase) -> str:
    return PHASE_NAMES[phase]

class PhaseManager:
    def __init__(self, config: Optional[WorkflowConfig] = None):
        self.config = config or WorkflowConfig()

    def calculate_phase_progress(self, phase: ProjectPhase, tasks: List[Task]) -> int:
        phase_tasks = [t for t in tasks if t.phase == phase]
        if not phase_tasks:
            return 0
        return round_half_up(sum(t.progress for t in phase_tasks) / len(phase_tasks))

    def derive_phase_status(self, phase: ProjectPhase, tasks: List[Task]) -> TaskStatus:
        statuses = [t.status for t in tasks if t.phase == phase]

        # An empty phase counts as completed
        if all(s == TaskStatus.COMPLETED for s in statuses):
            return TaskStatus.COMPLETED
        if TaskStatus.IN_PROGRESS in statuses:
            return TaskStatus.IN_PROGRESS
        if TaskStatus.BLOCKED in statuses:
            return TaskStatus.BLOCKED
        if TaskStatus.COMPLETED in statuses:
            return TaskStatus.IN_PROGRESS
        return TaskStatus.NOT_STARTED

    def update_phase_status(self, phase_info: PhaseInfo, tasks: List[Task]) -> PhaseInfo:
        """Return a copy of ``phase_info`` with progress, status and task ids recomputed."""
        return phase_info.model_copy(update={
            'progress': self.calculate_phase_progress(phase_info.phase, tasks),
            'status': self.derive_phase_status(phase_info.phase, tasks),
            'tasks': [t.id for t in tasks if t.phase == phase_info.phase],
        })

    def refresh_phases(self, project: Project) -> None:
        """Recompute every phase record of ``project`` in place."""
        for phase in PHASE_ORDER:
            project.phases[phase] = self.update_phase_status(project.phases[phase], project.tasks)

    def can_transition_to_next_phase(self, current_phase: ProjectPhase, tasks: List[Task]) -> bool:
        return all(t.status == TaskStatus.COMPLETED for t in tasks if t.phase == current_phase)

    def current_phase(self, project: Project) -> ProjectPhase:
        """Latest phase that has been entered; the first phase before any transition."""
        entered = [p for p in PHASE_ORDER if project.phases[p].start_date is not None]
        return entered[-1] if entered else PHASE_ORDER[0]

    def transition_to_next_phase(self, project: Project, current_phase: ProjectPhase,
                                 approver: Optional[Approver] = None) -> TransitionResult:
        """
        Move the project from ``current_phase`` into the next phase.

        Expected refusals - the last phase, unfinished tasks, a rejected
        approval - come back as an unsuccessful result rather than an error.
        Tasks are not moved; only the phase dates change.

        Args:
            project: Project whose phase records get stamped.
            current_phase: Phase being left.
            approver: Consulted when approval is required for the target phase.
        """
        target = next_phase(current_phase)
        if target is None:
            log.info(f"Project {project.id}: {current_phase.value} is already the final phase")
            return TransitionResult(success=False, message=f"{phase_name(current_phase)} is already the final phase")

        if not self.can_transition_to_next_phase(current_phase, project.tasks):
            log.info(f"Project {project.id}: {current_phase.value} still has unfinished tasks")
            return TransitionResult(
                success=False,
                message=f"Not all tasks in the {phase_name(current_phase)} phase are completed",
            )

        approvers = self.config.approvers.get(target) or []
        if self.config.require_approval and approvers:
            if approver is None:
                log.warning(f"Project {project.id}: approval required for {target.value} but no approver given")
            elif not approver.approve(target, list(approvers)):
                log.info(f"Project {project.id}: transition to {target.value} rejected")
                return TransitionResult(
                    success=False,
                    message=f"Transition to the {phase_name(target)} phase was not approved",
                )

        now = datetime.now()
        project.phases[target].start_date = now
        if project.phases[current_phase].end_date is None:
            project.phases[current_phase].end_date = now

        log.info(f"Project {project.id}: moved from {current_phase.value} to {target.value}")
        return TransitionResult(
            success=True,
            next_phase=target,
            message=f"Moved from {phase_name(current_phase)} to {phase_name(target)}",
        )

    def auto_advance(self, project: Project, approver: Optional[Approver] = None) -> Optional[TransitionResult]:
        """Refresh phases and, with auto transition on, leave a finished current phase."""
        self.refresh_phases(project)
        if not self.config.auto_transition:
            return None

        current = self.current_phase(project)
        if next_phase(current) is None or not self.can_transition_to_next_phase(current, project.tasks):
            return None
        return self.transition_to_next_phase(project, current, approver)

    def calculate_overall_progress(self, project: Project) -> int:
        progresses = [info.progress for info in project.phases.values()]
        if not progresses:
            return 0
        return round_half_up(sum(progresses) / len(progresses))

    def calculate_critical_path(self, tasks: List[Task]) -> List[Task]:
        return TaskGraph(tasks).critical_path()
