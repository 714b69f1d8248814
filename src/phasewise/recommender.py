"""
Assignment recommendation and greedy load balancing.
"""
import math
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .models import (
    Member, MemberSkill, ProjectPhase, Task, TaskAssignmentRecommendation, TaskPriority,
    SKILL_NAMES, round_half_up,
)
from .members import MemberStore
from .logs import get_logger

log = get_logger("recommender")

PHASE_REQUIRED_SKILLS: Dict[ProjectPhase, List[MemberSkill]] = {
    ProjectPhase.SALES: [MemberSkill.SALES, MemberSkill.PROJECT_MANAGEMENT],
    ProjectPhase.DESIGN: [MemberSkill.DESIGN, MemberSkill.QUALITY_ASSURANCE],
    ProjectPhase.MANUFACTURING: [MemberSkill.MANUFACTURING, MemberSkill.QUALITY_ASSURANCE],
    ProjectPhase.CONSTRUCTION: [MemberSkill.CONSTRUCTION, MemberSkill.QUALITY_ASSURANCE],
}

SKILL_WEIGHT = 50
LOAD_WEIGHT = 30
PRIORITY_WEIGHT = 20

def load_points(load_ratio: float) -> int:
    if load_ratio < 0.7:
        return LOAD_WEIGHT
    if load_ratio < 0.9:
        return 20
    if load_ratio < 1.0:
        return 10
    return 0

class AssignmentRecommender:
    """Scores members against tasks and keeps member load in step with assignments."""

    def __init__(self, store: MemberStore):
        self.store = store

    @staticmethod
    def required_skills_for_phase(phase: ProjectPhase) -> List[MemberSkill]:
        return list(PHASE_REQUIRED_SKILLS.get(phase, []))

    def matching_skills(self, member: Member, task: Task) -> List[MemberSkill]:
        required = self.required_skills_for_phase(task.phase)
        return [s for s in member.skills if s in required]

    def calculate_assignment_score(self, member: Member, task: Task) -> int:
        """
        Score ``member`` for ``task`` on a 0-100 scale.

        Up to 50 points for covering the phase's required skills, 30 for
        spare capacity and 20 for priority fit - breadth of skills on
        critical tasks, low load on everything else.
        """
        required = self.required_skills_for_phase(task.phase)
        score = 0.0

        if required:
            score += len(self.matching_skills(member, task)) / len(required) * SKILL_WEIGHT

        load_ratio = member.load_ratio
        score += load_points(load_ratio)

        if task.priority == TaskPriority.CRITICAL:
            if len(member.skills) >= 3:
                score += PRIORITY_WEIGHT
            elif len(member.skills) >= 2:
                score += 10
        else:
            score += max(0.0, PRIORITY_WEIGHT - load_ratio * PRIORITY_WEIGHT)

        return max(0, min(100, round_half_up(score)))

    def generate_recommendation_reason(self, member: Member, task: Task) -> str:
        reasons = []

        matched = self.matching_skills(member, task)
        if matched:
            reasons.append(f"has required skills ({', '.join(SKILL_NAMES[s] for s in matched)})")

        load_ratio = member.load_ratio
        if load_ratio < 0.7:
            reasons.append("has spare capacity")
        elif load_ratio >= 1.0:
            reasons.append("already at full capacity (overloaded)")

        if len(member.skills) >= 3:
            reasons.append("broad skill set")

        return ", ".join(reasons)

    @staticmethod
    def estimate_completion_date(member: Member, estimated_hours: float, now: Optional[datetime] = None) -> datetime:
        """Spread the hours over the member's free weekly capacity (at least one hour a week)."""
        now = now or datetime.now()
        hours_per_week = member.availability - member.current_load
        weeks = estimated_hours / max(1, hours_per_week)
        return now + timedelta(days=math.ceil(weeks * 7))

    def recommend_members_for_task(self, task: Task, top_n: int = 3,
                                   now: Optional[datetime] = None) -> List[TaskAssignmentRecommendation]:
        """Best ``top_n`` members for ``task``; members scoring 0 are left out."""
        recommendations = []
        for member in self.store.all_members():
            score = self.calculate_assignment_score(member, task)
            if score <= 0:
                continue
            recommendations.append(TaskAssignmentRecommendation(
                member=member,
                score=score,
                reason=self.generate_recommendation_reason(member, task),
                estimated_completion=self.estimate_completion_date(member, task.estimated_hours or 0, now),
            ))

        recommendations.sort(key=lambda r: r.score, reverse=True)
        return recommendations[:top_n]

    def assign_task_to_member(self, member_id: str, task: Task) -> Member:
        """
        Assign ``task`` to a member and charge its estimate to their load.

        Assigning to the current holder does nothing; a task held by someone
        else is released from them first.
        """
        member = self.store.require_member(member_id)
        if task.id in member.assigned_tasks:
            log.debug(f"Task {task.id} is already assigned to {member_id}")
            return member

        if task.assignee_id and task.assignee_id != member_id:
            previous = self.store.get_member(task.assignee_id)
            if previous is not None:
                self.unassign_task_from_member(previous.id, task)

        member.assigned_tasks.append(task.id)
        member.current_load += task.estimated_hours or 0
        task.assignee = member.name
        task.assignee_id = member.id

        if member.load_ratio >= 1.0:
            log.warning(f"Member {member.id} is over capacity ({member.current_load:g}/{member.availability:g}h)")
        log.info(f"Assigned task {task.id} to {member.id}")
        return member

    def unassign_task_from_member(self, member_id: str, task: Task) -> Member:
        member = self.store.require_member(member_id)
        if task.id in member.assigned_tasks:
            member.assigned_tasks = [tid for tid in member.assigned_tasks if tid != task.id]
            member.current_load = max(0.0, member.current_load - (task.estimated_hours or 0))
        if task.assignee_id == member_id:
            task.assignee = None
            task.assignee_id = None
        log.info(f"Unassigned task {task.id} from {member.id}")
        return member

    def balance_load(self, tasks: List[Task], now: Optional[datetime] = None) -> Dict[str, List[str]]:
        """
        Greedily assign every unassigned task to its best candidate.

        Tasks are handled in the given order and each assignment updates the
        member's load before the next task is scored. There is no
        backtracking.

        Returns:
            Task ids assigned in this pass, keyed by member id.
        """
        assignments: Dict[str, List[str]] = {}
        for task in tasks:
            if task.assignee or task.assignee_id:
                continue
            recommendations = self.recommend_members_for_task(task, top_n=1, now=now)
            if not recommendations:
                log.debug(f"No candidate for task {task.id}")
                continue
            best = recommendations[0].member
            self.assign_task_to_member(best.id, task)
            assignments.setdefault(best.id, []).append(task.id)
        return assignments
