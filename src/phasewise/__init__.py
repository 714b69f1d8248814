"""
phasewise - project workflow management for sales → design → manufacturing → construction.

This package provides:
- standard task generation and subtask decomposition from templates
- phase progress aggregation, gated phase transitions and the critical path
- member skill/load tracking with assignment recommendations
"""

from .version import VERSION, APP_SCHEMA_VERSION
from .models import (
    ProjectPhase,
    TaskStatus,
    TaskPriority,
    ProjectStatus,
    MemberSkill,
    Task,
    PhaseInfo,
    Project,
    Member,
    Team,
    WorkflowConfig,
    NotificationConfig,
    TransitionResult,
    TaskAssignmentRecommendation,
)
from .generator import generate_standard_tasks
from .decomposer import TaskDecomposer
from .graph import TaskGraph
from .phases import Approver, PhaseManager
from .members import MemberStore
from .recommender import AssignmentRecommender
from .roster import RosterProvider, PaginatedRosterProvider, YamlRosterProvider
from .notify import NotificationSink, LoggingSink, Notifier
from .stats import generate_stats
from .config import AppConfig, load_config

__version__ = VERSION

__all__ = [
    "VERSION",
    "APP_SCHEMA_VERSION",
    "ProjectPhase",
    "TaskStatus",
    "TaskPriority",
    "ProjectStatus",
    "MemberSkill",
    "Task",
    "PhaseInfo",
    "Project",
    "Member",
    "Team",
    "WorkflowConfig",
    "NotificationConfig",
    "TransitionResult",
    "TaskAssignmentRecommendation",
    "generate_standard_tasks",
    "TaskDecomposer",
    "TaskGraph",
    "Approver",
    "PhaseManager",
    "MemberStore",
    "AssignmentRecommender",
    "RosterProvider",
    "PaginatedRosterProvider",
    "YamlRosterProvider",
    "NotificationSink",
    "LoggingSink",
    "Notifier",
    "generate_stats",
    "AppConfig",
    "load_config",
]
