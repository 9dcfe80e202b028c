"""
Canonical workflow types (``hris_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for request state machines.  Benefits, PAN, assets,
certificates and tickets all declare their lifecycle as a ``Workflow`` so
that the legal edges live in one place and StatusTransitioner can turn an
action into a single conditional UPDATE.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
* An action always leads to exactly one target state.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Descriptive only: the owning service evaluates it before asking for the
    transition.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a request lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are absorbing.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def transitions_for(self, action: str) -> tuple[Transition, ...]:
        """All edges labelled ``action``."""
        return tuple(t for t in self.transitions if t.action == action)

    def source_states(self, action: str) -> tuple[str, ...]:
        return tuple(t.from_state for t in self.transitions_for(action))

    def target_state(self, action: str) -> str | None:
        edges = self.transitions_for(action)
        return edges[0].to_state if edges else None

    def allowed_actions(self, state: str) -> tuple[str, ...]:
        """Actions that may fire from ``state``, in declaration order."""
        seen: list[str] = []
        for t in self.transitions:
            if t.from_state == state and t.action not in seen:
                seen.append(t.action)
        return tuple(seen)

    def can(self, state: str, action: str) -> bool:
        return state in self.source_states(action)

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states


def validate_workflow(workflow: Workflow) -> list[str]:
    """Return a list of structural problems; empty when the workflow is sound."""
    problems: list[str] = []
    states = set(workflow.states)

    if workflow.initial_state not in states:
        problems.append(f"initial state '{workflow.initial_state}' not declared")

    for state in workflow.terminal_states:
        if state not in states:
            problems.append(f"terminal state '{state}' not declared")

    targets: dict[str, set[str]] = {}
    for t in workflow.transitions:
        if t.from_state not in states:
            problems.append(f"{t.action}: unknown source state '{t.from_state}'")
        if t.to_state not in states:
            problems.append(f"{t.action}: unknown target state '{t.to_state}'")
        if t.from_state in workflow.terminal_states:
            problems.append(f"{t.action}: leaves terminal state '{t.from_state}'")
        targets.setdefault(t.action, set()).add(t.to_state)

    for action, tos in targets.items():
        if len(tos) > 1:
            problems.append(f"{action}: ambiguous targets {sorted(tos)}")

    return problems
