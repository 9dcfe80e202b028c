"""
PAN lifecycles.

Aggregate::

    draft --submit-----------> pending_approval --complete_routing--> pending_employee
    draft --send_to_employee-> pending_employee --acknowledge--> completed
    pending_approval --decline--> declined
    draft | pending_approval --cancel--> cancelled

Routing step::

    pending --approve--> approved
    pending --decline--> declined
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow

HAS_APPROVERS_GUARD = Guard(
    name="has_approver_steps",
    description="Routing contains at least one non-acknowledger step",
)

NO_APPROVERS_GUARD = Guard(
    name="no_approver_steps",
    description="Routing contains only acknowledger steps",
)

ALL_APPROVED_GUARD = Guard(
    name="all_steps_approved",
    description="Every non-acknowledger step is approved",
)

EMPLOYEE_GUARD = Guard(
    name="actor_is_employee",
    description="Only the subject employee may acknowledge",
)

PAN_WORKFLOW = Workflow(
    name="pan",
    description="Personnel Action Notice drafting, routing and acknowledgement",
    initial_state="draft",
    states=(
        "draft",
        "pending_approval",
        "pending_employee",
        "completed",
        "declined",
        "cancelled",
    ),
    transitions=(
        Transition("draft", "pending_approval", action="submit", guard=HAS_APPROVERS_GUARD),
        Transition("draft", "pending_employee", action="send_to_employee", guard=NO_APPROVERS_GUARD),
        Transition("pending_approval", "pending_employee", action="complete_routing", guard=ALL_APPROVED_GUARD),
        Transition("pending_approval", "declined", action="decline"),
        Transition("pending_employee", "completed", action="acknowledge", guard=EMPLOYEE_GUARD),
        Transition("draft", "cancelled", action="cancel"),
        Transition("pending_approval", "cancelled", action="cancel"),
    ),
    terminal_states=("completed", "declined", "cancelled"),
)

PAN_STEP_WORKFLOW = Workflow(
    name="pan_step",
    description="One routing step's decision",
    initial_state="pending",
    states=("pending", "approved", "declined"),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("pending", "declined", action="decline"),
    ),
    terminal_states=("approved", "declined"),
)
