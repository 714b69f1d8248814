"""
Workspace - file-backed home of a project, its members and configuration.

A workspace is a ``.phw`` directory holding ``project.yml``, ``members.yml``,
``config.yml``, ``meta.json`` and optionally ``roster.yml``.
"""
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from phasewise.recovery import CorruptionError, FileOperationError, ProjectNotFoundError
from phasewise.version import APP_SCHEMA_VERSION
from phasewise.models import MemberRoster, Project
from phasewise.config import AppConfig, load_config
from phasewise.members import MemberStore
from phasewise.phases import PhaseManager
from phasewise.recommender import AssignmentRecommender
from phasewise.roster import YamlRosterProvider
from phasewise.logs import get_logger
from .io import atomic_write, load_model, DATA_YAML, DATA_JSON
from .validate import check_schema_version, validate_file_schema

log = get_logger("data")

def _validate(path: Path, model_type):
    # Missing config and members files fall back to defaults
    if path.exists() and not validate_file_schema(path, model_type):
        raise CorruptionError(f"{path} does not match the {model_type.__name__} schema")

class Workspace:
    DATA_DIR = Path(".phw")
    PROJECT_FILE = "project.yml"
    MEMBERS_FILE = "members.yml"
    CONFIG_FILE = "config.yml"
    ROSTER_FILE = "roster.yml"
    META_FILE = "meta.json"

    def __init__(self, basepath: Union[Path, str, None] = None):
        self.basepath = Path(basepath) if basepath is not None else Workspace.DATA_DIR
        project_file = self.basepath / Workspace.PROJECT_FILE
        if not project_file.exists():
            raise ProjectNotFoundError(f"No project found at {project_file}")

        check_schema_version(self.basepath / Workspace.META_FILE)

        config_file = self.basepath / Workspace.CONFIG_FILE
        members_file = self.basepath / Workspace.MEMBERS_FILE
        _validate(config_file, AppConfig)
        _validate(project_file, Project)
        _validate(members_file, MemberRoster)

        self.config: AppConfig = load_config(config_file)
        self.project: Project = load_model(Project, project_file)
        roster = load_model(MemberRoster, members_file) or MemberRoster()

        roster_file = self.basepath / Workspace.ROSTER_FILE
        provider = YamlRosterProvider(roster_file) if roster_file.exists() else None
        self.store = MemberStore.from_roster(
            roster,
            roster_provider=provider,
            default_availability=self.config.default_availability,
        )
        self.phase_manager = PhaseManager(self.config.workflow)
        self.recommender = AssignmentRecommender(self.store)
        log.debug(f"Loaded workspace {self.basepath} ({len(self.project.tasks)} tasks, {len(self.store.members)} members)")

    @classmethod
    def init(cls, project: Project, basepath: Union[Path, str, None] = None,
             config: Optional[AppConfig] = None) -> 'Workspace':
        """Create a new workspace directory for ``project``."""
        basepath = Path(basepath) if basepath is not None else Workspace.DATA_DIR
        if (basepath / Workspace.PROJECT_FILE).exists():
            raise FileOperationError(f"A project already exists at {basepath}")

        atomic_write(DATA_JSON, basepath / Workspace.META_FILE, {
            "schema_version": APP_SCHEMA_VERSION,
            "created_at": datetime.now().isoformat(),
        }, create_dirs=True)
        atomic_write(DATA_YAML, basepath / Workspace.CONFIG_FILE, (config or AppConfig()).model_dump(mode='json'))
        atomic_write(DATA_YAML, basepath / Workspace.MEMBERS_FILE, MemberRoster().model_dump(mode='json'))
        atomic_write(DATA_YAML, basepath / Workspace.PROJECT_FILE, project.model_dump(mode='json'))
        log.info(f"Initialized workspace for project {project.id} at {basepath}")
        return cls(basepath)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Save changes unless the block raised."""
        if exc_type is None:
            self.save_all()

    def save_all(self):
        """Write project and members back to their files."""
        atomic_write(DATA_YAML, self.basepath / Workspace.PROJECT_FILE, self.project.model_dump(mode='json'))
        atomic_write(DATA_YAML, self.basepath / Workspace.MEMBERS_FILE, self.store.to_roster().model_dump(mode='json'))
