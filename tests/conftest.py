"""Shared fixtures."""

import os
import tempfile

# Keep test runs out of the user's log directory
os.environ.setdefault("PHASEWISE_LOG_DIR", tempfile.mkdtemp(prefix="phasewise-logs-"))

import pytest
from datetime import datetime

from phasewise.models import Member, MemberSkill, Project, ProjectPhase, Task, TaskStatus
from phasewise.generator import generate_standard_tasks
from phasewise.members import MemberStore
from phasewise.recommender import AssignmentRecommender


NOW = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def project():
    """Project P1 with the standard task set."""
    p = Project(
        id="P1",
        name="Warehouse Extension",
        start_date=datetime(2026, 1, 5),
        target_end_date=datetime(2026, 12, 18),
    )
    p.tasks = generate_standard_tasks(p)
    return p


@pytest.fixture
def store():
    """alice: sales/PM, bob: design/QA/manufacturing, carol: construction at full load."""
    s = MemberStore()
    s.add_member(Member(id="alice", name="Alice", skills=[MemberSkill.SALES, MemberSkill.PROJECT_MANAGEMENT]))
    s.add_member(Member(id="bob", name="Bob", skills=[
        MemberSkill.DESIGN, MemberSkill.QUALITY_ASSURANCE, MemberSkill.MANUFACTURING,
    ]))
    s.add_member(Member(id="carol", name="Carol", skills=[MemberSkill.CONSTRUCTION], current_load=40))
    return s


@pytest.fixture
def recommender(store):
    return AssignmentRecommender(store)


def make_task(task_id, phase=ProjectPhase.SALES, status=TaskStatus.NOT_STARTED, progress=0, **kwargs):
    return Task(id=task_id, title=kwargs.pop("title", task_id), phase=phase, status=status, progress=progress, **kwargs)


def complete_phase(project, phase):
    for task in project.tasks_in_phase(phase):
        task.status = TaskStatus.COMPLETED
        task.progress = 100
