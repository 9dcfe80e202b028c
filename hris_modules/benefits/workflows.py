"""
Benefit request lifecycle.

    pending_hr --hr_approve--------> approved --fulfill--> fulfilled
    pending_hr --endorse_to_board--> pending_bod --board_approve--> approved
    pending_hr | pending_bod --reject--> rejected
    pending_hr | pending_bod --cancel--> cancelled
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow

HR_ROLE_GUARD = Guard(
    name="actor_is_hr",
    description="Actor holds one of the configured HR roles",
)

NO_BOARD_GUARD = Guard(
    name="board_not_required",
    description="Benefit type does not require board approval",
)

BOARD_GUARD = Guard(
    name="board_required",
    description="Benefit type requires board approval and reviewers are selected",
)

SELECTED_REVIEWER_GUARD = Guard(
    name="actor_is_selected_reviewer",
    description="Actor is one of the board reviewers chosen at endorsement",
)

REQUESTER_GUARD = Guard(
    name="actor_is_requester",
    description="Only the requesting employee may cancel",
)

FULFILLMENT_GUARD = Guard(
    name="actor_can_fulfill",
    description="Actor holds one of the configured fulfillment roles",
)

BENEFIT_REQUEST_WORKFLOW = Workflow(
    name="benefit_request",
    description="HR review, optional board approval, then fulfillment",
    initial_state="pending_hr",
    states=(
        "pending_hr",
        "pending_bod",
        "approved",
        "fulfilled",
        "rejected",
        "cancelled",
    ),
    transitions=(
        Transition("pending_hr", "approved", action="hr_approve", guard=NO_BOARD_GUARD),
        Transition("pending_hr", "pending_bod", action="endorse_to_board", guard=BOARD_GUARD),
        Transition("pending_bod", "approved", action="board_approve", guard=SELECTED_REVIEWER_GUARD),
        Transition("pending_hr", "rejected", action="reject", guard=HR_ROLE_GUARD),
        Transition("pending_bod", "rejected", action="reject"),
        Transition("pending_hr", "cancelled", action="cancel", guard=REQUESTER_GUARD),
        Transition("pending_bod", "cancelled", action="cancel", guard=REQUESTER_GUARD),
        Transition("approved", "fulfilled", action="fulfill", guard=FULFILLMENT_GUARD),
    ),
    terminal_states=("fulfilled", "rejected", "cancelled"),
)
