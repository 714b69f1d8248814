"""
Workspace configuration, stored as YAML next to the project data.
"""
from pathlib import Path
from typing import Union

from pydantic import Field

from .models import BaseYAMLModel, NotificationConfig, WorkflowConfig
from .data.io import load_model
from .logs import get_logger

log = get_logger("config")

class AppConfig(BaseYAMLModel):
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig, description="Phase transition rules")
    notifications: NotificationConfig = Field(default_factory=NotificationConfig, description="Which events are sent")
    default_availability: float = Field(default=40, ge=0, description="Weekly hours for newly synced members")
    deadline_window_days: int = Field(default=7, ge=0, description="Look-ahead for upcoming deadlines in stats")

def load_config(path: Union[Path, str]) -> AppConfig:
    """Load the config file, falling back to defaults when it does not exist."""
    config = load_model(AppConfig, path)
    if config is None:
        log.debug(f"No config at {path}, using defaults")
        return AppConfig()
    return config
