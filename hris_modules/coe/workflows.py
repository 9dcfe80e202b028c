"""
COE request lifecycle: pending -> approved | rejected.
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow

HR_ROLE_GUARD = Guard(
    name="actor_is_hr",
    description="Actor holds one of the configured HR roles",
)

COE_REQUEST_WORKFLOW = Workflow(
    name="coe_request",
    description="HR review of certificate of employment requests",
    initial_state="pending",
    states=("pending", "approved", "rejected"),
    transitions=(
        Transition("pending", "approved", action="approve", guard=HR_ROLE_GUARD),
        Transition("pending", "rejected", action="reject", guard=HR_ROLE_GUARD),
    ),
    terminal_states=("approved", "rejected"),
)
