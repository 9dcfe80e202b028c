"""
Helpdesk ticket lifecycle.

    new -> assigned -> in_progress -> pending_resolution -> resolved -> closed

The requester either confirms a proposed resolution or reopens the ticket,
which sends it back to the assignee.
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow

AGENT_GUARD = Guard(
    name="actor_is_assignee",
    description="Actor is the ticket's assignee",
)

REQUESTER_GUARD = Guard(
    name="actor_is_requester",
    description="Actor opened the ticket",
)

TICKET_WORKFLOW = Workflow(
    name="helpdesk_ticket",
    description="Helpdesk ticket handling with requester confirmation",
    initial_state="new",
    states=("new", "assigned", "in_progress", "pending_resolution", "resolved", "closed"),
    transitions=(
        Transition("new", "assigned", action="assign"),
        Transition("assigned", "assigned", action="assign"),
        Transition("assigned", "in_progress", action="start", guard=AGENT_GUARD),
        Transition("in_progress", "pending_resolution", action="propose_resolution", guard=AGENT_GUARD),
        Transition("pending_resolution", "resolved", action="confirm_resolution", guard=REQUESTER_GUARD),
        Transition("pending_resolution", "in_progress", action="reopen", guard=REQUESTER_GUARD),
        Transition("resolved", "in_progress", action="reopen", guard=REQUESTER_GUARD),
        Transition("resolved", "closed", action="close"),
    ),
    terminal_states=("closed",),
)
