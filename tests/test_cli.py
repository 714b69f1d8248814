"""Tests for the phw command line interface."""

import pytest
from click.testing import CliRunner
from pathlib import Path

from phasewise.cli import main
from phasewise.config import load_config
from phasewise.data.core import Workspace
from phasewise.models import ProjectPhase, TaskStatus

from conftest import complete_phase


ROSTER = """\
members:
  - user_id: u1
    name: Kenji
    title: Sales Manager
  - user_id: u2
    name: Mika
    title: Design Architect
"""


@pytest.fixture
def runner():
    return CliRunner()


def init_project(runner, *args):
    return runner.invoke(main, [
        "init", "P1", "--name", "Warehouse", "--start", "2026-01-05", "--end", "2026-12-18", *args,
    ])


def open_workspace():
    return Workspace(Path.cwd() / Workspace.DATA_DIR)


class TestInitAndStatus:
    """Test project creation and read-only commands."""

    def test_init(self, runner):
        with runner.isolated_filesystem():
            result = init_project(runner)
            assert result.exit_code == 0
            assert "Initialized project P1 with 21 tasks" in result.output

            ws = open_workspace()
            assert ws.project.tasks[0].subtasks
            assert ws.project.phases[ProjectPhase.SALES].start_date is not None
            assert ws.project.phases[ProjectPhase.SALES].tasks[0] == "P1-sales-1"

    def test_init_without_decomposition(self, runner):
        with runner.isolated_filesystem():
            result = init_project(runner, "--no-decompose")
            assert "and 0 subtasks" in result.output
            assert open_workspace().project.tasks[0].subtasks == []

    def test_init_twice(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            assert "already initialized" in init_project(runner).output

    def test_bad_dates(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init", "P1", "--name", "W", "--start", "2026-12-01", "--end", "2026-01-01"])
            assert "Error initializing project" in result.output

    def test_status(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            result = runner.invoke(main, ["status"])
            assert result.exit_code == 0
            assert "Current phase: Sales" in result.output
            assert "Overall progress: 0%" in result.output
            assert "21 total" in result.output

    def test_no_workspace(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["status"])
            assert "No project found" in result.output

    def test_critical_path(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            result = runner.invoke(main, ["critical-path"])
            assert "Critical path: 21 tasks" in result.output
            assert "P1-construction-6" in result.output


class TestTaskCommands:
    """Test task updates, roll-up and phase advancing."""

    def test_update_subtask_rolls_up(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            result = runner.invoke(main, ["task", "update", "P1-sales-1-sub-1", "--status", "completed", "--progress", "100"])
            assert result.exit_code == 0
            assert "P1-sales-1-sub-1: completed, 100%" in result.output

            parent = open_workspace().project.get_task("P1-sales-1")
            assert parent.progress == 33
            assert parent.status == TaskStatus.NOT_STARTED

    def test_blocked_subtask_blocks_parent(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            runner.invoke(main, ["task", "update", "P1-sales-2-sub-1", "--status", "blocked", "--reason", "no prices"])
            assert open_workspace().project.get_task("P1-sales-2").status == TaskStatus.BLOCKED

    def test_unknown_task(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            result = runner.invoke(main, ["task", "update", "nope", "--progress", "10"])
            assert "Task nope not found" in result.output

    def test_parent_progress_comes_from_subtasks(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            result = runner.invoke(main, ["task", "update", "P1-sales-1", "--progress", "90"])
            assert "P1-sales-1 has subtasks" in result.output
            assert open_workspace().project.get_task("P1-sales-1").progress == 0

    def test_negative_hours_rejected(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            result = runner.invoke(main, ["task", "update", "P1-sales-1-sub-1", "--actual-hours", "-1"])
            assert result.exit_code != 0
            assert "Invalid value" in result.output
            assert open_workspace().project.get_task("P1-sales-1-sub-1").actual_hours != -1

    def test_decompose(self, runner):
        with runner.isolated_filesystem():
            init_project(runner, "--no-decompose")
            result = runner.invoke(main, ["task", "decompose", "P1-sales-2"])
            assert "P1-sales-2 has 5 subtasks" in result.output
            assert len(open_workspace().project.get_task("P1-sales-2").subtasks) == 5

            result = runner.invoke(main, ["task", "decompose", "P1-sales-2-sub-1"])
            assert "not a top-level task" in result.output

    def test_advance(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            result = runner.invoke(main, ["advance"])
            assert "Not all tasks in the Sales phase are completed" in result.output

            with open_workspace() as ws:
                complete_phase(ws.project, ProjectPhase.SALES)

            result = runner.invoke(main, ["advance"])
            assert "Moved from Sales to Design" in result.output
            assert "Current phase: Design" in runner.invoke(main, ["status"]).output


class TestMemberCommands:
    """Test roster sync, recommendations and assignment."""

    def _setup(self, runner):
        init_project(runner)
        (Path.cwd() / Workspace.DATA_DIR / Workspace.ROSTER_FILE).write_text(ROSTER, encoding="utf-8")
        return runner.invoke(main, ["members", "sync"])

    def test_sync_and_list(self, runner):
        with runner.isolated_filesystem():
            assert "Synced 2 members" in self._setup(runner).output
            result = runner.invoke(main, ["members", "list"])
            assert "Kenji" in result.output
            assert "sales, project_management" in result.output

    def test_sync_without_roster(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            assert "No roster provider" in runner.invoke(main, ["members", "sync"]).output

    def test_recommend(self, runner):
        with runner.isolated_filesystem():
            self._setup(runner)
            result = runner.invoke(main, ["recommend", "P1-sales-2", "--top", "1"])
            assert "100  Kenji (u1)" in result.output
            assert "Mika" not in result.output

    def test_assign_and_unassign(self, runner):
        with runner.isolated_filesystem():
            self._setup(runner)
            result = runner.invoke(main, ["assign", "P1-sales-2", "u1"])
            assert "P1-sales-2 → Kenji (8/40h)" in result.output
            assert open_workspace().store.get_member("u1").current_load == 8

            assert "unassigned" in runner.invoke(main, ["unassign", "P1-sales-2"]).output
            ws = open_workspace()
            assert ws.store.get_member("u1").current_load == 0
            assert ws.project.get_task("P1-sales-2").assignee_id is None

    def test_assign_unknown_member(self, runner):
        with runner.isolated_filesystem():
            self._setup(runner)
            assert "Member ghost not found" in runner.invoke(main, ["assign", "P1-sales-2", "ghost"]).output

    def test_balance(self, runner):
        with runner.isolated_filesystem():
            self._setup(runner)
            result = runner.invoke(main, ["balance", "--phase", "design"])
            assert "Mika: P1-design-1" in result.output

            ws = open_workspace()
            assert all(t.assignee for t in ws.project.tasks_in_phase(ProjectPhase.DESIGN))
            assert not any(t.assignee for t in ws.project.tasks_in_phase(ProjectPhase.SALES))


class TestReport:
    """Test the progress report command."""

    def test_disabled_without_group(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            assert "Progress report disabled" in runner.invoke(main, ["report"]).output

    def test_sent_with_group(self, runner):
        with runner.isolated_filesystem():
            init_project(runner)
            config_file = Path.cwd() / Workspace.DATA_DIR / Workspace.CONFIG_FILE
            config = load_config(config_file)
            config.notifications.group_id = "chat-1"
            config_file.write_text(config.to_yaml(), encoding="utf-8")

            assert "Progress report sent" in runner.invoke(main, ["report"]).output
