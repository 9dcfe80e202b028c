"""
Job requisition lifecycles.

Aggregate::

    draft --submit--> pending_approval --approve--> approved --close--> closed
    pending_approval --reject--> rejected
    draft --close--> closed

Routing step::

    pending --approve--> approved
    pending --reject--> rejected
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow

FINAL_APPROVED_GUARD = Guard(
    name="final_steps_approved",
    description="Final approvers exist and every step is approved",
)

REQUISITION_WORKFLOW = Workflow(
    name="job_requisition",
    description="Job requisition drafting and two-stage approval",
    initial_state="draft",
    states=("draft", "pending_approval", "approved", "rejected", "closed"),
    transitions=(
        Transition("draft", "pending_approval", action="submit"),
        Transition("pending_approval", "approved", action="approve", guard=FINAL_APPROVED_GUARD),
        Transition("pending_approval", "rejected", action="reject"),
        Transition("draft", "closed", action="close"),
        Transition("approved", "closed", action="close"),
    ),
    terminal_states=("rejected", "closed"),
)

REQUISITION_STEP_WORKFLOW = Workflow(
    name="job_requisition_step",
    description="One requisition reviewer's decision",
    initial_state="pending",
    states=("pending", "approved", "rejected"),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("pending", "rejected", action="reject"),
    ),
    terminal_states=("approved", "rejected"),
)
