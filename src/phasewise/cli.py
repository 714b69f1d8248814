"""
Command Line Interface for phasewise.
"""

import click
import logging
from pathlib import Path
from typing import List, Optional

from .version import VERSION
from .models import Project, ProjectPhase, Task, TaskStatus, PHASE_ORDER, PHASE_NAMES
from .generator import generate_standard_tasks
from .decomposer import TaskDecomposer
from .phases import Approver
from .notify import LoggingSink, Notifier
from .stats import generate_stats, phase_summaries
from .recovery import PhasewiseError, NotificationError
from .data.core import Workspace
from .logs import set_console_level


class ConfirmApprover(Approver):
    """Asks on the terminal whether the listed approvers have signed off."""

    def __init__(self, assume_yes: bool = False):
        self.assume_yes = assume_yes

    def approve(self, phase: ProjectPhase, approvers: List[str]) -> bool:
        if self.assume_yes:
            return True
        return click.confirm(
            f"🔏 Entering {PHASE_NAMES[phase]} needs approval from {', '.join(approvers)}. Approved?",
            default=False,
        )


def _open_workspace() -> Workspace:
    return Workspace(Path.cwd() / Workspace.DATA_DIR)


def _ancestors(project: Project, task_id: str) -> Optional[List[Task]]:
    """Chain of tasks from the top level down to the parent of ``task_id``."""
    stack = [(t, []) for t in reversed(project.tasks)]
    while stack:
        task, path = stack.pop()
        if task.id == task_id:
            return path
        stack.extend((st, path + [task]) for st in reversed(task.subtasks))
    return None


@click.group()
@click.version_option(version=VERSION, prog_name="phw")
@click.option('-v', '--verbose', count=True, help='Show INFO logs, or DEBUG when given twice')
def main(verbose):
    """
    phasewise - sales → design → manufacturing → construction project workflow.
    """
    if verbose:
        set_console_level(logging.DEBUG if verbose > 1 else logging.INFO)


@main.command()
@click.argument('project_id')
@click.option('--name', required=True, help='Project name')
@click.option('--description', default='', help='Project description')
@click.option('--start', 'start_date', type=click.DateTime(), required=True, help='Start date')
@click.option('--end', 'end_date', type=click.DateTime(), required=True, help='Target end date')
@click.option('--decompose/--no-decompose', default=True, help='Break standard tasks into subtasks')
@click.option('--max-subtasks', type=int, default=None, help='Cap the subtasks per task')
def init(project_id, name, description, start_date, end_date, decompose, max_subtasks):
    """Create a project with the standard task set in the current directory."""
    data_dir = Path.cwd() / Workspace.DATA_DIR
    if (data_dir / Workspace.PROJECT_FILE).exists():
        click.echo(f"❌ Project already initialized ({Workspace.DATA_DIR} exists)")
        return

    try:
        project = Project(
            id=project_id,
            name=name,
            description=description,
            start_date=start_date,
            target_end_date=end_date,
        )
        project.phases[PHASE_ORDER[0]].start_date = start_date
        tasks = generate_standard_tasks(project)
        if decompose:
            tasks = TaskDecomposer().decompose_all(tasks, max_subtasks)
        project.tasks = tasks

        workspace = Workspace.init(project, data_dir)
        workspace.phase_manager.refresh_phases(workspace.project)
        workspace.save_all()
    except (PhasewiseError, ValueError) as e:
        click.echo(f"❌ Error initializing project: {e}")
        return

    subtasks = sum(len(t.subtasks) for t in project.tasks)
    click.echo(f"🚀 Initialized project {project_id} with {len(project.tasks)} tasks and {subtasks} subtasks")


@main.command()
def status():
    """Show progress per phase and task counts."""
    try:
        with _open_workspace() as ws:
            stats = generate_stats(ws.project, ws.phase_manager, deadline_days=ws.config.deadline_window_days)
            current = ws.phase_manager.current_phase(ws.project)

            click.echo(f"📦 {ws.project.name} ({ws.project.id})")
            click.echo(f"📍 Current phase: {PHASE_NAMES[current]}")
            click.echo(f"📊 Overall progress: {stats.overall_progress}%")
            for phase in PHASE_ORDER:
                info = ws.project.phases[phase]
                click.echo(f"   {PHASE_NAMES[phase]:<14} {stats.phase_progress[phase]:>3}%  {info.status.value}")
            click.echo(f"📋 Tasks: {stats.total_tasks} total, {stats.completed_tasks} completed, "
                       f"{stats.in_progress_tasks} in progress, {stats.blocked_tasks} blocked")
            if stats.upcoming_deadlines:
                click.echo(f"⏰ Due soon: {', '.join(t.id for t in stats.upcoming_deadlines)}")
            if stats.critical_tasks:
                click.echo(f"🔥 Critical: {', '.join(t.id for t in stats.critical_tasks)}")
    except PhasewiseError as e:
        click.echo(f"❌ {e}")


@main.command('critical-path')
def critical_path():
    """Show the longest dependency chain."""
    try:
        ws = _open_workspace()
        path = ws.phase_manager.calculate_critical_path(ws.project.tasks)
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(f"🎯 Critical path: {len(path)} tasks")
    for task in path:
        click.echo(f"   {task.id}  {task.title} ({PHASE_NAMES[task.phase]})")


@main.command()
@click.option('--yes', 'assume_yes', is_flag=True, help='Treat required approvals as given')
def advance(assume_yes):
    """Move the project into the next phase."""
    try:
        with _open_workspace() as ws:
            current = ws.phase_manager.current_phase(ws.project)
            result = ws.phase_manager.transition_to_next_phase(ws.project, current, ConfirmApprover(assume_yes))
            ws.phase_manager.refresh_phases(ws.project)
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(f"{'✅' if result.success else '❌'} {result.message}")


@main.group()
def task():
    """Update and decompose tasks."""
    pass


@task.command('update')
@click.argument('task_id')
@click.option('--status', 'new_status', type=click.Choice([s.value for s in TaskStatus]), help='New status')
@click.option('--progress', type=click.IntRange(0, 100), help='New progress percentage')
@click.option('--actual-hours', type=click.FloatRange(0), help='Hours spent so far')
@click.option('--reason', default=None, help='Why the task is blocked')
def task_update(task_id, new_status, progress, actual_hours, reason):
    """Change a task's status or progress and roll it up."""
    decomposer = TaskDecomposer()
    try:
        with _open_workspace() as ws:
            target = ws.project.get_task(task_id)
            if progress is not None and target.subtasks:
                click.echo(f"❌ {task_id} has subtasks; its progress comes from them")
                return
            if new_status:
                target.status = TaskStatus(new_status)
            if progress is not None:
                target.progress = progress
            if actual_hours is not None:
                target.actual_hours = actual_hours

            for ancestor in reversed(_ancestors(ws.project, task_id) or []):
                rolled = decomposer.update_parent_status(ancestor)
                ancestor.status = rolled.status
                ancestor.progress = rolled.progress

            notifier = Notifier(LoggingSink(), ws.config.notifications)
            try:
                if target.status == TaskStatus.COMPLETED:
                    notifier.notify_task_completed(target)
                elif target.status == TaskStatus.BLOCKED:
                    notifier.notify_task_blocked(target, reason or "no reason given")
            except NotificationError as e:
                click.echo(f"⚠️  {e}")

            result = ws.phase_manager.auto_advance(ws.project, ConfirmApprover())
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(f"✅ {task_id}: {target.status.value}, {target.progress}%")
    if result is not None:
        click.echo(f"{'➡️ ' if result.success else '⏸️ '} {result.message}")


@task.command('decompose')
@click.argument('task_id')
@click.option('--depth', default=1, type=click.IntRange(0), help='How many levels to expand')
@click.option('--max-subtasks', type=int, default=None, help='Cap the subtasks per task')
def task_decompose(task_id, depth, max_subtasks):
    """Break a top-level task into subtasks."""
    try:
        with _open_workspace() as ws:
            index = next((i for i, t in enumerate(ws.project.tasks) if t.id == task_id), None)
            if index is None:
                click.echo(f"❌ {task_id} is not a top-level task")
                return
            before = {t.id for t in ws.project.tasks[index].walk()}
            decomposed = TaskDecomposer().decompose_recursively(ws.project.tasks[index], depth, max_subtasks=max_subtasks)
            ws.project.tasks[index] = decomposed

            notifier = Notifier(LoggingSink(), ws.config.notifications)
            try:
                for created in decomposed.walk():
                    if created.id not in before:
                        notifier.notify_task_created(created)
            except NotificationError as e:
                click.echo(f"⚠️  {e}")
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(f"✅ {task_id} has {len(decomposed.subtasks)} subtasks")


@main.group()
def members():
    """Manage the member roster."""
    pass


@members.command('sync')
def members_sync():
    """Pull members from roster.yml."""
    try:
        with _open_workspace() as ws:
            synced = ws.store.sync_members()
    except PhasewiseError as e:
        click.echo(f"❌ Error syncing members: {e}")
        return

    click.echo(f"👥 Synced {len(synced)} members")


@members.command('list')
def members_list():
    """List members with their skills and load."""
    try:
        ws = _open_workspace()
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    if not ws.store.members:
        click.echo("📭 No members")
        return
    for m in ws.store.all_members():
        skills = ', '.join(s.value for s in m.skills) or '-'
        click.echo(f"👤 {m.id}  {m.name}  [{skills}]  {m.current_load:g}/{m.availability:g}h")


@main.command()
@click.argument('task_id')
@click.option('--top', default=3, type=click.IntRange(1), help='Number of candidates')
def recommend(task_id, top):
    """Suggest members for a task."""
    try:
        ws = _open_workspace()
        target = ws.project.get_task(task_id)
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    recommendations = ws.recommender.recommend_members_for_task(target, top)
    if not recommendations:
        click.echo("📭 No suitable members")
        return
    for r in recommendations:
        click.echo(f"{r.score:>3}  {r.member.name} ({r.member.id}) - {r.reason}; "
                   f"done by {r.estimated_completion:%Y-%m-%d}")


@main.command()
@click.argument('task_id')
@click.argument('member_id')
def assign(task_id, member_id):
    """Assign a task to a member."""
    try:
        with _open_workspace() as ws:
            member = ws.recommender.assign_task_to_member(member_id, ws.project.get_task(task_id))
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(f"✅ {task_id} → {member.name} ({member.current_load:g}/{member.availability:g}h)")


@main.command()
@click.argument('task_id')
def unassign(task_id):
    """Remove a task's assignee."""
    try:
        with _open_workspace() as ws:
            target = ws.project.get_task(task_id)
            if not target.assignee_id:
                click.echo(f"📭 {task_id} is not assigned")
                return
            ws.recommender.unassign_task_from_member(target.assignee_id, target)
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    click.echo(f"✅ {task_id} unassigned")


@main.command()
@click.option('--phase', type=click.Choice([p.value for p in ProjectPhase]), help='Only balance this phase')
def balance(phase):
    """Assign every unassigned task to its best candidate."""
    try:
        with _open_workspace() as ws:
            tasks = ws.project.tasks
            if phase:
                tasks = ws.project.tasks_in_phase(ProjectPhase(phase))
            assignments = ws.recommender.balance_load(tasks)
            names = {m.id: m.name for m in ws.store.all_members()}
    except PhasewiseError as e:
        click.echo(f"❌ {e}")
        return

    if not assignments:
        click.echo("📭 Nothing assigned")
        return
    for member_id, task_ids in assignments.items():
        click.echo(f"👤 {names.get(member_id, member_id)}: {', '.join(task_ids)}")


@main.command()
def report():
    """Send the progress report and deadline warnings."""
    try:
        with _open_workspace() as ws:
            ws.phase_manager.refresh_phases(ws.project)
            notifier = Notifier(LoggingSink(), ws.config.notifications)
            sent = notifier.send_progress_report(ws.project.name, phase_summaries(ws.project, ws.phase_manager))
            warned = [t.id for t in ws.project.walk() if notifier.notify_deadline_approaching(t)]
    except PhasewiseError as e:
        click.echo(f"❌ Error sending report: {e}")
        return

    click.echo("📨 Progress report sent" if sent else "🔕 Progress report disabled (no group configured)")
    if warned:
        click.echo(f"⏰ Deadline warnings: {', '.join(warned)}")


if __name__ == "__main__":
    main()
