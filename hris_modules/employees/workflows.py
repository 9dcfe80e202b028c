"""
Profile change review lifecycle.

pending -> approved | rejected
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow

HR_ROLE_GUARD = Guard(
    name="actor_is_hr",
    description="Reviewer holds one of the configured HR roles",
)

REASON_GUARD = Guard(
    name="reason_given",
    description="Rejection carries a non-blank reason",
)

CHANGE_REVIEW_WORKFLOW = Workflow(
    name="change_review",
    description="HR review of profile changes produced by acknowledged PANs",
    initial_state="pending",
    states=("pending", "approved", "rejected"),
    transitions=(
        Transition("pending", "approved", action="approve", guard=HR_ROLE_GUARD),
        Transition("pending", "rejected", action="reject", guard=REASON_GUARD),
    ),
    terminal_states=("approved", "rejected"),
)
