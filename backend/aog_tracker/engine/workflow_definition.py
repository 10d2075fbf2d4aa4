"""Workflow Definition - The AOG status graph as data"""
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from ..domain.enums import AOGWorkflowStatus as S
from ..domain.errors import WorkflowDefinitionError


class WorkflowDefinition:
    """
    Finite-state machine for AOG events.

    Holds the edge table (status -> permitted successors), the set of states
    that need a blocking reason, and the terminal states. The graph must be
    acyclic; construction fails otherwise.
    """

    def __init__(
        self,
        transitions: Mapping[S, Iterable[S]],
        blocking_states: Iterable[S],
        terminal_states: Iterable[S],
    ):
        self.transitions: Dict[S, FrozenSet[S]] = {
            status: frozenset(targets) for status, targets in transitions.items()
        }
        self.blocking_states: FrozenSet[S] = frozenset(blocking_states)
        self.terminal_states: FrozenSet[S] = frozenset(terminal_states)
        self._validate()

    @property
    def states(self) -> FrozenSet[S]:
        """Every state named by the definition"""
        named = set(self.transitions)
        for targets in self.transitions.values():
            named.update(targets)
        return frozenset(named)

    def successors(self, status: S) -> FrozenSet[S]:
        """Permitted targets from a status (empty for unknown or final states)"""
        return self.transitions.get(status, frozenset())

    def requires_blocking_reason(self, status: S) -> bool:
        return status in self.blocking_states

    def is_terminal(self, status: S) -> bool:
        return status in self.terminal_states

    def _validate(self) -> None:
        """Check that extra sets only name known states and that the graph is a DAG"""
        known = self.states
        unknown = (self.blocking_states | self.terminal_states) - known
        if unknown:
            raise WorkflowDefinitionError(
                "Workflow definition references unknown states",
                details={"states": sorted(s.value for s in unknown)}
            )

        cycle = self._find_cycle()
        if cycle:
            raise WorkflowDefinitionError(
                "Workflow definition contains a cycle",
                details={"cycle": [s.value for s in cycle]}
            )

    def _find_cycle(self) -> Optional[List[S]]:
        """Depth-first search; returns the first cycle found as a path"""
        visiting: List[S] = []
        done = set()

        def visit(status: S) -> Optional[List[S]]:
            if status in done:
                return None
            if status in visiting:
                return visiting[visiting.index(status):] + [status]
            visiting.append(status)
            for target in sorted(self.successors(status), key=lambda s: s.value):
                found = visit(target)
                if found:
                    return found
            visiting.pop()
            done.add(status)
            return None

        for status in sorted(self.states, key=lambda s: s.value):
            found = visit(status)
            if found:
                return found
        return None


AOG_TRANSITIONS: Dict[S, FrozenSet[S]] = {
    S.REPORTED: frozenset({S.TROUBLESHOOTING}),
    S.TROUBLESHOOTING: frozenset({S.ISSUE_IDENTIFIED}),
    S.ISSUE_IDENTIFIED: frozenset({S.RESOLVED_NO_PARTS, S.PART_REQUIRED}),
    S.RESOLVED_NO_PARTS: frozenset({S.BACK_IN_SERVICE}),
    S.PART_REQUIRED: frozenset({S.PROCUREMENT_REQUESTED}),
    S.PROCUREMENT_REQUESTED: frozenset({S.FINANCE_APPROVAL_PENDING}),
    S.FINANCE_APPROVAL_PENDING: frozenset({S.ORDER_PLACED}),
    S.ORDER_PLACED: frozenset({S.IN_TRANSIT}),
    S.IN_TRANSIT: frozenset({S.AT_PORT, S.RECEIVED_IN_STORES}),
    S.AT_PORT: frozenset({S.CUSTOMS_CLEARANCE}),
    S.CUSTOMS_CLEARANCE: frozenset({S.RECEIVED_IN_STORES}),
    S.RECEIVED_IN_STORES: frozenset({S.ISSUED_TO_MAINTENANCE}),
    S.ISSUED_TO_MAINTENANCE: frozenset({S.INSTALLED_AND_TESTED}),
    S.INSTALLED_AND_TESTED: frozenset({S.ENGINE_RUN_REQUESTED, S.BACK_IN_SERVICE}),
    S.ENGINE_RUN_REQUESTED: frozenset({S.ENGINE_RUN_COMPLETED}),
    S.ENGINE_RUN_COMPLETED: frozenset({S.BACK_IN_SERVICE}),
    S.BACK_IN_SERVICE: frozenset({S.CLOSED}),
    S.CLOSED: frozenset(),
}

AOG_BLOCKING_STATES: FrozenSet[S] = frozenset({
    S.FINANCE_APPROVAL_PENDING,
    S.AT_PORT,
    S.CUSTOMS_CLEARANCE,
    S.IN_TRANSIT,
})

AOG_TERMINAL_STATES: FrozenSet[S] = frozenset({S.BACK_IN_SERVICE, S.CLOSED})


def default_workflow() -> WorkflowDefinition:
    """The standard AOG lifecycle"""
    return WorkflowDefinition(AOG_TRANSITIONS, AOG_BLOCKING_STATES, AOG_TERMINAL_STATES)
