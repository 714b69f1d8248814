"""
Roster providers - where member records come from.
"""
import abc
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from .models import BaseYAMLModel
from .recovery import ConfigurationError
from .logs import get_logger

log = get_logger("roster")

class RosterEntry(BaseModel):
    user_id: str = Field(description="Member id in the directory")
    name: str = Field(description="Display name")
    email: str = Field(default="", description="Contact email")
    department: Optional[str] = Field(default=None, description="Primary department id")
    title: Optional[str] = Field(default=None, description="Job title, used to infer skills")
    avatar_url: Optional[str] = Field(default=None, description="Avatar image URL")

class RosterPage(BaseModel):
    items: List[RosterEntry] = Field(default_factory=list)
    next_page_token: Optional[str] = None

class RosterFile(BaseYAMLModel):
    members: List[RosterEntry] = Field(default_factory=list)

class RosterProvider(abc.ABC):
    @abc.abstractmethod
    def list_members(self) -> List[RosterEntry]:
        """Return every member in the directory."""
        pass

class PaginatedRosterProvider(RosterProvider):
    """Provider backed by a paged directory API; pages are concatenated."""

    @abc.abstractmethod
    def fetch_page(self, page_token: Optional[str] = None) -> RosterPage:
        pass

    def list_members(self) -> List[RosterEntry]:
        members: List[RosterEntry] = []
        seen_tokens = set()
        page_token = None
        while True:
            page = self.fetch_page(page_token)
            members.extend(page.items)
            page_token = page.next_page_token
            if not page_token:
                break
            if page_token in seen_tokens:
                log.warning(f"Roster pagination repeated token {page_token}, stopping")
                break
            seen_tokens.add(page_token)
        log.debug(f"Fetched {len(members)} roster entries")
        return members

class YamlRosterProvider(RosterProvider):
    """Reads members from a YAML file with a top-level ``members`` list."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)

    def list_members(self) -> List[RosterEntry]:
        if not self.path.exists():
            raise ConfigurationError(f"Roster file not found: {self.path}")
        return RosterFile.from_yaml(self.path.read_text(encoding='utf-8')).members
