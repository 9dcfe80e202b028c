"""
Asset lifecycles.

Asset::

    available --assign--> assigned
    assigned --return_to_stock--> available
    assigned --return_for_repair--> in_repair
    assigned --return_and_retire--> retired
    available --send_to_repair--> in_repair
    in_repair --complete_repair--> available
    available | in_repair --retire--> retired

Asset request::

    pending --approve--> approved --fulfill--> fulfilled       (request)
    pending --submit_return--> returned --confirm_return--> fulfilled  (return)
    pending --confirm_return--> fulfilled
    pending | approved | returned --reject--> rejected
"""

from hris_kernel.domain.workflow import Guard, Transition, Workflow

OPEN_ASSIGNMENT_GUARD = Guard(
    name="no_open_assignment",
    description="Asset has no assignment without a return date",
)

ASSET_WORKFLOW = Workflow(
    name="asset",
    description="Asset custody and maintenance lifecycle",
    initial_state="available",
    states=("available", "assigned", "in_repair", "retired"),
    transitions=(
        Transition("available", "assigned", action="assign", guard=OPEN_ASSIGNMENT_GUARD),
        Transition("assigned", "available", action="return_to_stock"),
        Transition("assigned", "in_repair", action="return_for_repair"),
        Transition("assigned", "retired", action="return_and_retire"),
        Transition("available", "in_repair", action="send_to_repair"),
        Transition("in_repair", "available", action="complete_repair"),
        Transition("available", "retired", action="retire"),
        Transition("in_repair", "retired", action="retire"),
    ),
    terminal_states=("retired",),
)

# Disposition chosen on return -> workflow action
RETURN_ACTIONS: dict[str, str] = {
    "available": "return_to_stock",
    "in_repair": "return_for_repair",
    "retired": "return_and_retire",
}

ASSET_REQUEST_WORKFLOW = Workflow(
    name="asset_request",
    description="Employee asset requests and return prompts",
    initial_state="pending",
    states=("pending", "returned", "approved", "rejected", "fulfilled"),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("pending", "returned", action="submit_return"),
        Transition("approved", "fulfilled", action="fulfill"),
        Transition("returned", "fulfilled", action="confirm_return"),
        Transition("pending", "fulfilled", action="confirm_return"),
        Transition("pending", "rejected", action="reject"),
        Transition("approved", "rejected", action="reject"),
        Transition("returned", "rejected", action="reject"),
    ),
    terminal_states=("rejected", "fulfilled"),
)
