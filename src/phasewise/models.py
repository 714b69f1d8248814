from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Iterator
import math
import yaml

from .recovery import TaskNotFoundError

def round_half_up(value: float) -> int:
    """Round a non-negative mean to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))

class ProjectPhase(Enum):
    SALES = "sales"
    DESIGN = "design"
    MANUFACTURING = "manufacturing"
    CONSTRUCTION = "construction"

# Declaration order is workflow order
PHASE_ORDER: List[ProjectPhase] = list(ProjectPhase)

PHASE_NAMES: Dict[ProjectPhase, str] = {
    ProjectPhase.SALES: "Sales",
    ProjectPhase.DESIGN: "Design",
    ProjectPhase.MANUFACTURING: "Manufacturing",
    ProjectPhase.CONSTRUCTION: "Construction",
}

class TaskStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class TaskPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

class ProjectStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"

class MemberSkill(Enum):
    SALES = "sales"
    DESIGN = "design"
    MANUFACTURING = "manufacturing"
    CONSTRUCTION = "construction"
    PROJECT_MANAGEMENT = "project_management"
    QUALITY_ASSURANCE = "quality_assurance"

SKILL_NAMES: Dict[MemberSkill, str] = {
    MemberSkill.SALES: "Sales",
    MemberSkill.DESIGN: "Design",
    MemberSkill.MANUFACTURING: "Manufacturing",
    MemberSkill.CONSTRUCTION: "Construction",
    MemberSkill.PROJECT_MANAGEMENT: "PM",
    MemberSkill.QUALITY_ASSURANCE: "QA",
}

class BaseYAMLModel(BaseModel):
    """Model that serializes to and from YAML documents."""

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(mode='json'), default_flow_style=False,
                              sort_keys=False, indent=2, allow_unicode=True)

    @classmethod
    def from_yaml(cls, text: str):
        data = yaml.safe_load(text) or {}
        return cls.model_validate(data)

def _check_sibling_scope(tasks: List['Task'], owner: str):
    """Sibling ids are unique and dependencies only point at siblings."""
    ids = [t.id for t in tasks]
    known = set(ids)
    if len(known) != len(ids):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise ValueError(f"Duplicate task ids in {owner}: {', '.join(dupes)}")
    for task in tasks:
        missing = [d for d in task.dependencies if d not in known]
        if missing:
            raise ValueError(f"Task {task.id} depends on unknown task(s): {', '.join(missing)}")

class Task(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(description="Project-unique task identifier")
    title: str = Field(description="Short human readable title")
    description: str = Field(default="", description="What the task involves")
    phase: ProjectPhase = Field(description="Workflow phase the task belongs to")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="Current status of the task")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    assignee: Optional[str] = Field(default=None, description="Display name of the assigned member")
    assignee_id: Optional[str] = Field(default=None, description="Id of the assigned member")
    start_date: Optional[datetime] = Field(default=None, description="When work on the task started")
    due_date: Optional[datetime] = Field(default=None, description="When the task is due")
    completed_date: Optional[datetime] = Field(default=None, description="When the task was completed")
    dependencies: List[str] = Field(default_factory=list, description="Ids of sibling tasks this task waits on")
    subtasks: List['Task'] = Field(default_factory=list, description="Owned child tasks")
    progress: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    estimated_hours: Optional[float] = Field(default=None, ge=0, description="Estimated effort in hours")
    actual_hours: Optional[float] = Field(default=None, ge=0, description="Effort spent in hours")
    tags: List[str] = Field(default_factory=list, description="Unordered labels")

    @field_validator('tags')
    @classmethod
    def dedupe_tags(cls, v):
        return list(dict.fromkeys(v))

    @model_validator(mode='after')
    def validate_task(self):
        if self.start_date and self.completed_date and self.completed_date < self.start_date:
            raise ValueError("completed_date must be after start_date")
        _check_sibling_scope(self.subtasks, f"subtasks of {self.id}")
        return self

    def walk(self) -> Iterator['Task']:
        """Yield this task and every descendant, depth first."""
        stack = [self]
        while stack:
            task = stack.pop()
            yield task
            stack.extend(reversed(task.subtasks))

    def find_subtask(self, task_id: str) -> Optional['Task']:
        """Find a direct subtask by id."""
        return next((st for st in self.subtasks if st.id == task_id), None)

Task.model_rebuild()

class PhaseInfo(BaseModel):
    phase: ProjectPhase = Field(description="The phase this record aggregates")
    name: str = Field(default="", description="Display name of the phase")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="Derived phase status")
    start_date: Optional[datetime] = Field(default=None, description="When the phase was entered")
    end_date: Optional[datetime] = Field(default=None, description="When the phase was left")
    progress: int = Field(default=0, ge=0, le=100, description="Mean progress of the phase's tasks")
    tasks: List[str] = Field(default_factory=list, description="Ids of the tasks in this phase")
    responsible: Optional[str] = Field(default=None, description="Person responsible for the phase")

    @model_validator(mode='after')
    def default_name(self):
        if not self.name:
            self.name = PHASE_NAMES[self.phase]
        return self

def default_phases() -> Dict[ProjectPhase, PhaseInfo]:
    return {phase: PhaseInfo(phase=phase) for phase in PHASE_ORDER}

class Project(BaseYAMLModel):
    """A project with one PhaseInfo per workflow phase and its top-level tasks."""

    id: str = Field(description="Project identifier, used as the task id prefix")
    name: str = Field(description="Project name")
    description: str = Field(default="", description="Project description")
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, description="Overall project status")
    start_date: datetime = Field(description="When the project starts")
    target_end_date: datetime = Field(description="When the project should finish")
    actual_end_date: Optional[datetime] = Field(default=None, description="When the project finished")
    phases: Dict[ProjectPhase, PhaseInfo] = Field(default_factory=default_phases, description="Phase records keyed by phase")
    tasks: List[Task] = Field(default_factory=list, description="Top-level tasks; subtasks live inside them")

    @model_validator(mode='after')
    def validate_project(self):
        if self.target_end_date < self.start_date:
            raise ValueError("target_end_date must be after start_date")
        for phase in PHASE_ORDER:
            if phase not in self.phases:
                self.phases[phase] = PhaseInfo(phase=phase)
        for phase, info in self.phases.items():
            if info.phase != phase:
                raise ValueError(f"Phase record for {phase.value} is labelled {info.phase.value}")
        _check_sibling_scope(self.tasks, f"project {self.id}")
        seen = set()
        for task in self.walk():
            if task.id in seen:
                raise ValueError(f"Task id {task.id} is used more than once in project {self.id}")
            seen.add(task.id)
        return self

    def walk(self) -> Iterator[Task]:
        """Yield every task in the project, subtasks included."""
        for task in self.tasks:
            yield from task.walk()

    def find_task(self, task_id: str) -> Optional[Task]:
        """Find a task or subtask by id."""
        return next((t for t in self.walk() if t.id == task_id), None)

    def get_task(self, task_id: str) -> Task:
        task = self.find_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found in project {self.id}")
        return task

    def tasks_in_phase(self, phase: ProjectPhase) -> List[Task]:
        return [t for t in self.tasks if t.phase == phase]

class Member(BaseModel):
    id: str = Field(description="Member identifier from the roster")
    name: str = Field(description="Display name")
    email: str = Field(default="", description="Contact email")
    department: Optional[str] = Field(default=None, description="Department identifier")
    title: Optional[str] = Field(default=None, description="Job title")
    avatar_url: Optional[str] = Field(default=None, description="Avatar image URL")
    skills: List[MemberSkill] = Field(default_factory=list, description="Skills the member has")
    availability: float = Field(default=40, ge=0, description="Capacity in hours per week")
    current_load: float = Field(default=0, ge=0, description="Hours committed to assigned tasks")
    assigned_tasks: List[str] = Field(default_factory=list, description="Ids of assigned tasks")

    @field_validator('skills')
    @classmethod
    def dedupe_skills(cls, v):
        return list(dict.fromkeys(v))

    @property
    def load_ratio(self) -> float:
        if self.availability <= 0:
            return math.inf
        return self.current_load / self.availability

class Team(BaseModel):
    id: str = Field(description="Team identifier")
    name: str = Field(description="Team name")
    description: str = Field(default="", description="What the team does")
    member_ids: List[str] = Field(default_factory=list, description="Ids of the team's members")

class MemberRoster(BaseYAMLModel):
    """Persisted members and teams of a workspace."""

    members: List[Member] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)

class WorkflowConfig(BaseModel):
    auto_transition: bool = Field(default=False, description="Advance phases automatically once complete")
    require_approval: bool = Field(default=False, description="Gate transitions on approver sign-off")
    approvers: Dict[ProjectPhase, List[str]] = Field(
        default_factory=dict,
        description="Approvers required to enter each phase"
    )

class NotificationConfig(BaseModel):
    enabled: bool = Field(default=True)
    group_id: Optional[str] = Field(default=None, description="Chat the notifications go to")
    notify_on_task_created: bool = Field(default=False)
    notify_on_task_completed: bool = Field(default=True)
    notify_on_task_blocked: bool = Field(default=True)
    notify_on_deadline_approaching: bool = Field(default=True)
    deadline_warning_days: int = Field(default=3, ge=0, description="Days before the due date to warn")

class TransitionResult(BaseModel):
    success: bool
    next_phase: Optional[ProjectPhase] = None
    message: str

class TaskAssignmentRecommendation(BaseModel):
    member: Member
    score: int = Field(ge=0, le=100)
    reason: str
    estimated_completion: datetime

class MemberLoad(BaseModel):
    name: str
    availability: float
    load: float
    utilization_rate: float

class TeamLoadSummary(BaseModel):
    total_availability: float
    total_load: float
    utilization_rate: float
    members: List[MemberLoad] = Field(default_factory=list)

class ResourceUtilization(BaseModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    estimated_hours: float = 0
    actual_hours: float = 0

class PhaseSummary(BaseModel):
    phase: ProjectPhase
    name: str
    total_tasks: int
    completed_tasks: int
    progress: int

class DashboardStats(BaseModel):
    project_id: str
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    blocked_tasks: int
    overall_progress: int
    phase_progress: Dict[ProjectPhase, int]
    upcoming_deadlines: List[Task] = Field(default_factory=list)
    critical_tasks: List[Task] = Field(default_factory=list)
    resource_utilization: Dict[str, ResourceUtilization] = Field(default_factory=dict)
