"""Unit tests for phase aggregation and transitions."""

import pytest
from typing import List

from phasewise.models import PhaseInfo, ProjectPhase, TaskStatus, WorkflowConfig
from phasewise.phases import Approver, PhaseManager, next_phase

from conftest import make_task, complete_phase


class StubApprover(Approver):
    """Records every approval request and answers with a fixed decision."""

    def __init__(self, decision: bool):
        self.decision = decision
        self.calls = []

    def approve(self, phase: ProjectPhase, approvers: List[str]) -> bool:
        self.calls.append((phase, approvers))
        return self.decision


@pytest.fixture
def manager():
    return PhaseManager()


@pytest.fixture
def gated_manager():
    return PhaseManager(WorkflowConfig(require_approval=True, approvers={ProjectPhase.DESIGN: ["director"]}))


class TestPhaseAggregation:
    """Test phase progress and status derivation."""

    def test_progress_mean(self, manager):
        tasks = [make_task(f"t{i}", progress=p) for i, p in enumerate([100, 100, 100, 50, 0])]
        assert manager.calculate_phase_progress(ProjectPhase.SALES, tasks) == 70

    def test_progress_ignores_other_phases(self, manager):
        tasks = [make_task("a", progress=40), make_task("b", phase=ProjectPhase.DESIGN, progress=100)]
        assert manager.calculate_phase_progress(ProjectPhase.SALES, tasks) == 40
        assert manager.calculate_phase_progress(ProjectPhase.CONSTRUCTION, tasks) == 0

    @pytest.mark.parametrize("statuses,expected", [
        ([TaskStatus.COMPLETED, TaskStatus.COMPLETED], TaskStatus.COMPLETED),
        ([TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED], TaskStatus.IN_PROGRESS),
        ([TaskStatus.BLOCKED, TaskStatus.NOT_STARTED], TaskStatus.BLOCKED),
        ([TaskStatus.COMPLETED, TaskStatus.NOT_STARTED], TaskStatus.IN_PROGRESS),
        ([TaskStatus.NOT_STARTED, TaskStatus.NOT_STARTED], TaskStatus.NOT_STARTED),
        ([], TaskStatus.COMPLETED),
    ])
    def test_derive_status(self, manager, statuses, expected):
        tasks = [make_task(f"t{i}", status=s) for i, s in enumerate(statuses)]
        assert manager.derive_phase_status(ProjectPhase.SALES, tasks) == expected

    def test_update_phase_status_is_a_copy(self, manager, project):
        info = project.phases[ProjectPhase.SALES]
        project.tasks[0].progress = 50
        updated = manager.update_phase_status(info, project.tasks)

        assert updated.progress == 10
        assert updated.tasks == [f"P1-sales-{i}" for i in range(1, 6)]
        assert info.progress == 0
        assert info.tasks == []

    def test_refresh_phases(self, manager, project):
        complete_phase(project, ProjectPhase.SALES)
        manager.refresh_phases(project)
        assert project.phases[ProjectPhase.SALES].status == TaskStatus.COMPLETED
        assert project.phases[ProjectPhase.SALES].progress == 100
        assert project.phases[ProjectPhase.DESIGN].status == TaskStatus.NOT_STARTED

    def test_overall_progress(self, manager, project):
        complete_phase(project, ProjectPhase.SALES)
        project.tasks_in_phase(ProjectPhase.DESIGN)[0].progress = 50
        manager.refresh_phases(project)
        # (100 + 10 + 0 + 0) / 4
        assert manager.calculate_overall_progress(project) == 28

    def test_critical_path(self, manager, project):
        path = manager.calculate_critical_path(project.tasks)
        assert path[0].id == "P1-sales-1"
        assert path[-1].id == "P1-construction-6"

    def test_critical_path_skips_detached_cycle(self, manager):
        tasks = [
            make_task("A"),
            make_task("B", dependencies=["C"]),
            make_task("C", dependencies=["B"]),
        ]
        assert [t.id for t in manager.calculate_critical_path(tasks)] == ["A"]


class TestTransitions:
    """Test moving between phases."""

    def test_next_phase(self):
        assert next_phase(ProjectPhase.SALES) == ProjectPhase.DESIGN
        assert next_phase(ProjectPhase.CONSTRUCTION) is None

    def test_blocked_by_unfinished_tasks(self, manager, project):
        result = manager.transition_to_next_phase(project, ProjectPhase.SALES)
        assert not result.success
        assert result.next_phase is None
        assert "Sales" in result.message
        assert project.phases[ProjectPhase.DESIGN].start_date is None

    def test_one_unfinished_task_is_enough(self, manager, project):
        complete_phase(project, ProjectPhase.SALES)
        project.tasks[4].status = TaskStatus.IN_PROGRESS
        assert not manager.can_transition_to_next_phase(ProjectPhase.SALES, project.tasks)
        assert not manager.transition_to_next_phase(project, ProjectPhase.SALES).success

    def test_success_stamps_dates(self, manager, project):
        complete_phase(project, ProjectPhase.SALES)
        result = manager.transition_to_next_phase(project, ProjectPhase.SALES)

        assert result.success
        assert result.next_phase == ProjectPhase.DESIGN
        assert project.phases[ProjectPhase.DESIGN].start_date is not None
        assert project.phases[ProjectPhase.SALES].end_date is not None
        assert manager.current_phase(project) == ProjectPhase.DESIGN

    def test_tasks_are_not_moved(self, manager, project):
        complete_phase(project, ProjectPhase.SALES)
        manager.transition_to_next_phase(project, ProjectPhase.SALES)
        assert len(project.tasks_in_phase(ProjectPhase.SALES)) == 5

    def test_final_phase(self, manager, project):
        for phase in ProjectPhase:
            complete_phase(project, phase)
        result = manager.transition_to_next_phase(project, ProjectPhase.CONSTRUCTION)
        assert not result.success
        assert "final" in result.message

    def test_empty_phase_can_be_left(self, manager, project):
        project.tasks = []
        assert manager.transition_to_next_phase(project, ProjectPhase.MANUFACTURING).success

    def test_current_phase_defaults_to_first(self, manager, project):
        assert manager.current_phase(project) == ProjectPhase.SALES


class TestApproval:
    """Test gated transitions."""

    def test_rejected(self, gated_manager, project):
        complete_phase(project, ProjectPhase.SALES)
        approver = StubApprover(False)
        result = gated_manager.transition_to_next_phase(project, ProjectPhase.SALES, approver)

        assert not result.success
        assert "approved" in result.message
        assert approver.calls == [(ProjectPhase.DESIGN, ["director"])]
        assert project.phases[ProjectPhase.DESIGN].start_date is None

    def test_approved(self, gated_manager, project):
        complete_phase(project, ProjectPhase.SALES)
        result = gated_manager.transition_to_next_phase(project, ProjectPhase.SALES, StubApprover(True))
        assert result.success

    def test_no_approver_proceeds(self, gated_manager, project):
        complete_phase(project, ProjectPhase.SALES)
        assert gated_manager.transition_to_next_phase(project, ProjectPhase.SALES).success

    def test_no_approvers_listed_for_target(self, gated_manager, project):
        complete_phase(project, ProjectPhase.SALES)
        complete_phase(project, ProjectPhase.DESIGN)
        approver = StubApprover(False)
        result = gated_manager.transition_to_next_phase(project, ProjectPhase.DESIGN, approver)
        assert result.success
        assert approver.calls == []

    def test_incomplete_phase_not_sent_for_approval(self, gated_manager, project):
        approver = StubApprover(True)
        gated_manager.transition_to_next_phase(project, ProjectPhase.SALES, approver)
        assert approver.calls == []


class TestAutoAdvance:
    """Test automatic transition after task updates."""

    def test_disabled(self, manager, project):
        complete_phase(project, ProjectPhase.SALES)
        assert manager.auto_advance(project) is None
        assert project.phases[ProjectPhase.SALES].status == TaskStatus.COMPLETED
        assert manager.current_phase(project) == ProjectPhase.SALES

    def test_enabled(self, project):
        manager = PhaseManager(WorkflowConfig(auto_transition=True))
        assert manager.auto_advance(project) is None

        complete_phase(project, ProjectPhase.SALES)
        result = manager.auto_advance(project)
        assert result.success
        assert manager.current_phase(project) == ProjectPhase.DESIGN
