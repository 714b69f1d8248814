"""
Dependency graph over a flat task list.

Tasks are stored as index-addressed nodes; dependency and successor edges are
index lists. Dependencies naming unknown tasks carry no edge.
"""
from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import Task, TaskStatus
from .recovery import CyclicDependencyError, TaskNotFoundError
from .logs import get_logger

log = get_logger("graph")

class TaskGraph:
    """Directed graph of sibling tasks."""

    def __init__(self, tasks: Sequence[Task]):
        self.tasks: List[Task] = list(tasks)
        self._index: Dict[str, int] = {}
        for i, task in enumerate(self.tasks):
            self._index.setdefault(task.id, i)

        self._dependencies: List[List[int]] = [
            [self._index[d] for d in dict.fromkeys(task.dependencies) if d in self._index]
            for task in self.tasks
        ]
        # Successors end up in task-list order
        self._successors: List[List[int]] = [[] for _ in self.tasks]
        for j, deps in enumerate(self._dependencies):
            for i in deps:
                self._successors[i].append(j)

        self._roots: List[int] = [i for i, t in enumerate(self.tasks) if not t.dependencies]
        self._orders: Dict[Tuple[int, ...], List[int]] = {}
        self._chains: Dict[Tuple[int, ...], List[Optional[int]]] = {}
        self._lengths: Dict[Tuple[int, ...], List[int]] = {}

    def _require(self, task_id: str) -> int:
        if task_id not in self._index:
            raise TaskNotFoundError(f"Task {task_id} is not part of the graph")
        return self._index[task_id]

    def _reachable(self, starts: Iterable[int]) -> List[bool]:
        seen = [False] * len(self.tasks)
        stack = []
        for s in starts:
            if not seen[s]:
                seen[s] = True
                stack.append(s)
        while stack:
            for s in self._successors[stack.pop()]:
                if not seen[s]:
                    seen[s] = True
                    stack.append(s)
        return seen

    def _topological_indices(self, starts: Optional[Tuple[int, ...]] = None) -> List[int]:
        """
        Kahn order of the nodes reachable from ``starts`` (every node when None).

        Only edges inside that subgraph count, so a cycle elsewhere in the
        task list does not stop the walk.
        """
        key = starts if starts is not None else tuple(range(len(self.tasks)))
        if key not in self._orders:
            included = self._reachable(key)
            indegree = [
                sum(1 for d in deps if included[d]) if included[i] else 0
                for i, deps in enumerate(self._dependencies)
            ]
            queue = deque(i for i, n in enumerate(indegree) if included[i] and n == 0)
            order = []
            while queue:
                i = queue.popleft()
                order.append(i)
                for s in self._successors[i]:
                    indegree[s] -= 1
                    if indegree[s] == 0:
                        queue.append(s)
            if len(order) != sum(included):
                stuck = [self.tasks[i].id for i, n in enumerate(indegree) if n > 0]
                raise CyclicDependencyError(f"Dependency cycle among tasks: {', '.join(stuck)}")
            self._orders[key] = order
        return self._orders[key]

    def _longest_chains(self, starts: Tuple[int, ...]):
        if starts not in self._chains:
            length = [0] * len(self.tasks)
            next_in_chain: List[Optional[int]] = [None] * len(self.tasks)
            for i in reversed(self._topological_indices(starts)):
                best = None
                for s in self._successors[i]:
                    if best is None or length[s] > length[best]:
                        best = s
                next_in_chain[i] = best
                length[i] = 1 + (length[best] if best is not None else 0)
            self._lengths[starts] = length
            self._chains[starts] = next_in_chain
        return self._lengths[starts], self._chains[starts]

    def _walk(self, node: Optional[int], next_in_chain: List[Optional[int]]) -> List[Task]:
        chain = []
        while node is not None:
            chain.append(self.tasks[node])
            node = next_in_chain[node]
        return chain

    def topological_order(self) -> List[Task]:
        """Every task, ordered so each comes after its dependencies."""
        return [self.tasks[i] for i in self._topological_indices()]

    def successors(self, task_id: str) -> List[Task]:
        """Tasks that list ``task_id`` as a dependency."""
        return [self.tasks[j] for j in self._successors[self._require(task_id)]]

    def longest_chain_from(self, task_id: str) -> List[Task]:
        """Longest successor chain starting at ``task_id``; earlier successors win ties."""
        start = (self._require(task_id),)
        _, next_in_chain = self._longest_chains(start)
        return self._walk(start[0], next_in_chain)

    def critical_path(self) -> List[Task]:
        """
        Longest dependency chain by hop count.

        Every task without dependencies is a root; the longest chain across
        roots wins, the first one encountered on ties. Durations are not
        weighted and converging paths are not merged. Only tasks reachable
        from a root are considered, so a cycle no root leads into is ignored.
        """
        if not self._roots:
            log.debug("No root tasks, critical path is empty")
            return []
        starts = tuple(self._roots)
        length, next_in_chain = self._longest_chains(starts)
        best_root = None
        for i in self._roots:
            if best_root is None or length[i] > length[best_root]:
                best_root = i
        return self._walk(best_root, next_in_chain)

    def unmet_dependencies(self, task_id: str) -> List[str]:
        """Dependency ids of ``task_id`` that are not completed (unknown ids included)."""
        task = self.tasks[self._require(task_id)]
        unmet = []
        for dep_id in dict.fromkeys(task.dependencies):
            dep = self.tasks[self._index[dep_id]] if dep_id in self._index else None
            if dep is None or dep.status != TaskStatus.COMPLETED:
                unmet.append(dep_id)
        return unmet

    def ready_tasks(self) -> List[Task]:
        """Not-started tasks whose dependencies are all completed."""
        return [
            t for t in self.tasks
            if t.status == TaskStatus.NOT_STARTED and not self.unmet_dependencies(t.id)
        ]
