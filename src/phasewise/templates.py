"""
Task templates for standard task generation and subtask decomposition.

The bundled catalog lives in ``phasewise/resources/templates.yml``.
"""
from functools import lru_cache
from importlib.resources import files
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from .models import ProjectPhase, PHASE_ORDER
from .logs import get_logger

log = get_logger("templates")

# Share of the parent estimate taken by each generic subtask
GENERIC_SUBTASKS = [
    ("Planning", "Plan the work and its schedule", 0.10),
    ("Execution", "Carry out the work", 0.70),
    ("Review & Verification", "Review the deliverables and verify quality", 0.15),
    ("Completion Report", "Report completion and hand in deliverables", 0.05),
]

DEFAULT_PARENT_HOURS = 8

class TaskTemplate(BaseModel):
    name: str = Field(description="Title given to tasks created from this template")
    description: str = Field(default="", description="Description given to created tasks")
    estimated_hours: Optional[float] = Field(default=None, ge=0, description="Estimated effort in hours")

class TemplateCatalog(BaseModel):
    """Standard tasks per phase and phase+title specific subtask lists."""

    phases: Dict[ProjectPhase, List[TaskTemplate]] = Field(default_factory=dict)
    subtasks: Dict[ProjectPhase, Dict[str, List[TaskTemplate]]] = Field(default_factory=dict)

    def phase_templates(self, phase: ProjectPhase) -> List[TaskTemplate]:
        return self.phases.get(phase, [])

    def subtask_templates(self, phase: ProjectPhase, title: str) -> List[TaskTemplate]:
        return self.subtasks.get(phase, {}).get(title, [])

def generic_subtask_templates(title: str, estimated_hours: Optional[float]) -> List[TaskTemplate]:
    """Planning/execution/review/report split of a parent estimate."""
    base = estimated_hours or DEFAULT_PARENT_HOURS
    return [
        TaskTemplate(name=f"{title} - {suffix}", description=description, estimated_hours=base * share)
        for suffix, description, share in GENERIC_SUBTASKS
    ]

@lru_cache(maxsize=1)
def load_catalog() -> TemplateCatalog:
    """Load the bundled template catalog."""
    text = (files('phasewise') / 'resources' / 'templates.yml').read_text(encoding='utf-8')
    catalog = TemplateCatalog.model_validate(yaml.safe_load(text))
    counts = ", ".join(f"{p.value}={len(catalog.phase_templates(p))}" for p in PHASE_ORDER)
    log.debug(f"Loaded templates: {counts}")
    return catalog
