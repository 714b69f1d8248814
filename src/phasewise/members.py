"""
In-memory member and team store.

A store is created once per process (or per test) and handed to whoever
needs it; it owns the members' load counters.
"""
import re
from typing import Dict, List, Optional

from .models import Member, MemberLoad, MemberRoster, MemberSkill, Team, TeamLoadSummary
from .roster import RosterEntry, RosterProvider
from .recovery import ConfigurationError, MemberNotFoundError, TeamNotFoundError
from .logs import get_logger

log = get_logger("members")

TITLE_SKILL_PATTERNS = [
    (MemberSkill.SALES, re.compile(r'\bsales\b|営業')),
    (MemberSkill.DESIGN, re.compile(r'design|architect|設計|デザイン')),
    (MemberSkill.MANUFACTURING, re.compile(r'manufactur|production|engineer|製造|生産')),
    (MemberSkill.CONSTRUCTION, re.compile(r'construction|\bsite\b|施工|建設')),
    (MemberSkill.PROJECT_MANAGEMENT, re.compile(r'\bpm\b|project manager|manager|マネージャー')),
    (MemberSkill.QUALITY_ASSURANCE, re.compile(r'\bqa\b|quality|品質')),
]

def infer_skills_from_title(title: Optional[str]) -> List[MemberSkill]:
    """Guess skills from a job title; unknown titles give no skills."""
    if not title:
        return []
    lowered = title.lower()
    return [skill for skill, pattern in TITLE_SKILL_PATTERNS if pattern.search(lowered)]

class MemberStore:
    def __init__(self, roster_provider: Optional[RosterProvider] = None, default_availability: float = 40):
        self.roster_provider = roster_provider
        self.default_availability = default_availability
        self.members: Dict[str, Member] = {}
        self.teams: Dict[str, Team] = {}

    @classmethod
    def from_roster(cls, roster: MemberRoster, **kwargs) -> 'MemberStore':
        store = cls(**kwargs)
        for member in roster.members:
            store.add_member(member)
        for team in roster.teams:
            store.create_team(team)
        return store

    def to_roster(self) -> MemberRoster:
        return MemberRoster(members=list(self.members.values()), teams=list(self.teams.values()))

    def sync_members(self) -> List[Member]:
        """
        Pull the roster and merge it into the store.

        New members get skills inferred from their title and the default
        availability. Members already known keep their skills, availability
        and load; only their directory details are refreshed.
        """
        if self.roster_provider is None:
            raise ConfigurationError("No roster provider is configured")

        synced = []
        for entry in self.roster_provider.list_members():
            synced.append(self._merge_entry(entry))
        log.info(f"Synced {len(synced)} members from roster")
        return synced

    def _merge_entry(self, entry: RosterEntry) -> Member:
        member = self.members.get(entry.user_id)
        if member is None:
            member = Member(
                id=entry.user_id,
                name=entry.name,
                email=entry.email,
                department=entry.department,
                title=entry.title,
                avatar_url=entry.avatar_url,
                skills=infer_skills_from_title(entry.title),
                availability=self.default_availability,
            )
            self.members[member.id] = member
        else:
            member.name = entry.name
            member.email = entry.email
            member.department = entry.department
            member.title = entry.title
            member.avatar_url = entry.avatar_url
        return member

    def add_member(self, member: Member) -> None:
        self.members[member.id] = member

    def get_member(self, member_id: str) -> Optional[Member]:
        return self.members.get(member_id)

    def require_member(self, member_id: str) -> Member:
        member = self.members.get(member_id)
        if member is None:
            raise MemberNotFoundError(f"Member {member_id} not found")
        return member

    def all_members(self) -> List[Member]:
        return list(self.members.values())

    def members_by_skill(self, skill: MemberSkill) -> List[Member]:
        return [m for m in self.members.values() if skill in m.skills]

    def update_member_skills(self, member_id: str, skills: List[MemberSkill]) -> None:
        self.require_member(member_id).skills = list(dict.fromkeys(skills))

    def update_member_availability(self, member_id: str, hours: float) -> None:
        if hours < 0:
            raise ValueError("Availability cannot be negative")
        self.require_member(member_id).availability = hours

    def create_team(self, team: Team) -> None:
        self.teams[team.id] = team

    def require_team(self, team_id: str) -> Team:
        team = self.teams.get(team_id)
        if team is None:
            raise TeamNotFoundError(f"Team {team_id} not found")
        return team

    def add_member_to_team(self, team_id: str, member_id: str) -> None:
        team = self.require_team(team_id)
        self.require_member(member_id)
        if member_id not in team.member_ids:
            team.member_ids.append(member_id)

    def team_load_summary(self, team_id: str) -> TeamLoadSummary:
        team = self.require_team(team_id)
        members = [self.members[mid] for mid in team.member_ids if mid in self.members]

        total_availability = sum(m.availability for m in members)
        total_load = sum(m.current_load for m in members)
        return TeamLoadSummary(
            total_availability=total_availability,
            total_load=total_load,
            utilization_rate=total_load / total_availability if total_availability > 0 else 0,
            members=[
                MemberLoad(
                    name=m.name,
                    availability=m.availability,
                    load=m.current_load,
                    utilization_rate=m.current_load / m.availability if m.availability > 0 else 0,
                )
                for m in members
            ],
        )
