"""
Notification events and the sink they are sent to.
"""
import abc
import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import NotificationConfig, PhaseSummary, ProjectPhase, Task
from .recovery import NotificationError
from .logs import get_logger

log = get_logger("notify")

class NotificationEvent(BaseModel):
    kind: str
    created_at: datetime = Field(default_factory=datetime.now)

class TaskEvent(NotificationEvent):
    task_id: str
    title: str
    phase: ProjectPhase
    assignee: Optional[str] = None

class TaskCreatedEvent(TaskEvent):
    kind: str = "task_created"

class TaskCompletedEvent(TaskEvent):
    kind: str = "task_completed"

class TaskBlockedEvent(TaskEvent):
    kind: str = "task_blocked"
    reason: str

class DeadlineApproachingEvent(TaskEvent):
    kind: str = "deadline_approaching"
    due_date: datetime
    days_remaining: int

class ProgressReportEvent(NotificationEvent):
    kind: str = "progress_report"
    project_name: str
    phases: List[PhaseSummary] = Field(default_factory=list)

class NotificationSink(abc.ABC):
    @abc.abstractmethod
    def send(self, event: NotificationEvent, chat_id: Optional[str] = None) -> None:
        """Deliver one event. Raise on delivery failure."""
        pass

class LoggingSink(NotificationSink):
    """Writes events to the phasewise log."""

    def __init__(self, logger=None):
        self.logger = logger or log

    def send(self, event: NotificationEvent, chat_id: Optional[str] = None) -> None:
        if isinstance(event, ProgressReportEvent):
            lines = [f"{p.name}: {p.completed_tasks}/{p.total_tasks} done ({p.progress}%)" for p in event.phases]
            self.logger.info(f"[{event.kind}] {event.project_name} - " + "; ".join(lines))
        elif isinstance(event, TaskBlockedEvent):
            self.logger.warning(f"[{event.kind}] {event.title} ({event.phase.value}): {event.reason}")
        elif isinstance(event, DeadlineApproachingEvent):
            self.logger.warning(f"[{event.kind}] {event.title} due in {event.days_remaining} day(s)")
        else:
            self.logger.info(f"[{event.kind}] {getattr(event, 'title', '')}")

def _task_fields(task: Task) -> dict:
    return {'task_id': task.id, 'title': task.title, 'phase': task.phase, 'assignee': task.assignee}

class Notifier:
    """Builds events from engine state and forwards the enabled ones to a sink."""

    def __init__(self, sink: NotificationSink, config: Optional[NotificationConfig] = None):
        self.sink = sink
        self.config = config or NotificationConfig()

    def _send(self, event: NotificationEvent) -> bool:
        try:
            self.sink.send(event, self.config.group_id)
        except Exception as e:
            log.error(f"Failed to send {event.kind} notification: {e}")
            raise NotificationError(f"Failed to send {event.kind} notification: {e}") from e
        log.debug(f"Sent {event.kind} notification")
        return True

    def notify_task_created(self, task: Task) -> bool:
        if not (self.config.enabled and self.config.notify_on_task_created):
            return False
        return self._send(TaskCreatedEvent(**_task_fields(task)))

    def notify_task_completed(self, task: Task) -> bool:
        if not (self.config.enabled and self.config.notify_on_task_completed):
            return False
        return self._send(TaskCompletedEvent(**_task_fields(task)))

    def notify_task_blocked(self, task: Task, reason: str) -> bool:
        if not (self.config.enabled and self.config.notify_on_task_blocked):
            return False
        return self._send(TaskBlockedEvent(reason=reason, **_task_fields(task)))

    def notify_deadline_approaching(self, task: Task, now: Optional[datetime] = None) -> bool:
        """Warn when ``task`` is due within the configured window (and not overdue)."""
        if not (self.config.enabled and self.config.notify_on_deadline_approaching) or task.due_date is None:
            return False

        now = now or datetime.now()
        days_remaining = math.ceil((task.due_date - now).total_seconds() / 86400)
        if not 0 < days_remaining <= self.config.deadline_warning_days:
            return False
        return self._send(DeadlineApproachingEvent(
            due_date=task.due_date, days_remaining=days_remaining, **_task_fields(task)))

    def send_progress_report(self, project_name: str, phases: List[PhaseSummary]) -> bool:
        # Reports go to the group chat only
        if not self.config.enabled or not self.config.group_id:
            return False
        return self._send(ProgressReportEvent(project_name=project_name, phases=phases))
