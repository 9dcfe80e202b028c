"""
Printable PAN certificate.

Renders the notice as a self-contained HTML page for the browser print
pipeline.  Every interpolated value is HTML-escaped here; the layout below
is the only trusted markup.
"""

import html
from decimal import Decimal

from hris_kernel.db.types import round_money
from hris_kernel.utils.templating import render_placeholders
from hris_modules.pan.models import PAN, PANRole, PANStepStatus, Particulars

FORM_CODE = "TNG-HRD-022"

PAN_LAYOUT = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Personnel Action Notice {{pan_id}}</title>
<style>
  @page { size: A4; margin: 20mm; }
  body { font-family: 'Times New Roman', serif; font-size: 11pt; color: black; }
  h1 { font-size: 18pt; text-align: center; }
  h2 { font-size: 12pt; }
  table { width: 100%; border-collapse: collapse; }
  td, th { padding: 4px 8px; border-top: 1px solid #999; text-align: left; }
  .signatures { display: flex; flex-wrap: wrap; justify-content: space-around; margin-top: 48px; }
  .signature { width: 160px; text-align: center; font-size: 9pt; }
  .signature .name { border-top: 1px solid black; font-weight: bold; text-transform: uppercase; }
</style>
</head>
<body>
{{logo}}
<h1>PERSONNEL ACTION NOTICE</h1>
<p style="text-align:center">PAN ID: {{pan_id}}</p>
<table>
  <tr><td><b>Employee Name:</b></td><td>{{employee_name}}</td><td><b>Effectivity Date:</b></td><td>{{effective_date}}</td></tr>
  <tr><td><b>Position:</b></td><td>{{position}}</td><td><b>Date Hired:</b></td><td>{{date_hired}}</td></tr>
  <tr><td><b>Department:</b></td><td>{{department}}</td><td><b>Tenure:</b></td><td>{{tenure}}</td></tr>
</table>
<h2>ACTION TAKEN</h2>
{{action_taken}}
<h2>PARTICULARS OF CHANGE</h2>
<table>
  <tr><th>Particulars</th><th>From</th><th>To</th></tr>
{{particulars}}
</table>
<h2>REMARKS / JUSTIFICATIONS</h2>
<p>{{notes}}</p>
<div class="signatures">
{{signatures}}
</div>
<p style="text-align:right;font-size:8pt">{{form_code}}</p>
</body>
</html>
"""


def _e(value) -> str:
    return html.escape("" if value is None else str(value))


def _money(currency: str, amount: Decimal | None) -> str:
    return f"{currency} {round_money(amount or Decimal('0')):,.2f}"


def _particulars_rows(before: Particulars, after: Particulars, currency: str) -> str:
    rows = []
    for label, name in (
        ("Employment Status", "employment_status"),
        ("Position", "position"),
        ("Department", "department"),
    ):
        rows.append(
            f"  <tr><td><b>{label}</b></td>"
            f"<td>{_e(getattr(before, name) or 'N/A')}</td>"
            f"<td>{_e(getattr(after, name) or 'N/A')}</td></tr>"
        )
    for label, name in (
        ("Basic", "salary_basic"),
        ("Deminimis", "salary_deminimis"),
        ("Reimbursable", "salary_reimbursable"),
    ):
        rows.append(
            f"  <tr><td>Salary ({label})</td>"
            f"<td>{_e(_money(currency, getattr(before, name)))}</td>"
            f"<td>{_e(_money(currency, getattr(after, name)))}</td></tr>"
        )
    rows.append(
        f"  <tr><td><b>Total</b></td>"
        f"<td><b>{_e(_money(currency, before.salary_total))}</b></td>"
        f"<td><b>{_e(_money(currency, after.salary_total))}</b></td></tr>"
    )
    return "\n".join(rows)


def _signature_block(mark: str, name: str, position: str, caption: str) -> str:
    return (
        f'<div class="signature"><div>{mark}</div>'
        f'<div class="name">{_e(name) or "&nbsp;"}</div>'
        f"<div>{_e(position)}</div><div><b>{_e(caption)}</b></div></div>"
    )


def render_printable(
    pan: PAN,
    *,
    currency: str,
    position: str = "",
    department: str = "",
    date_hired: str = "",
    approver_positions: dict | None = None,
) -> str:
    """
    HTML for one PAN.

    ``approver_positions`` maps routing user ids to job titles; steps fall
    back to their routing role.
    """
    approver_positions = approver_positions or {}

    signatures = []
    if pan.preparer_name:
        mark = (
            f'<img src="{_e(pan.preparer_signature_url)}" alt="Preparer Signature">'
            if pan.preparer_signature_url else "&nbsp;"
        )
        signatures.append(_signature_block(mark, pan.preparer_name, "HR Head", "PREPARED BY"))

    steps = sorted(
        (s for s in pan.routing_steps if s.role is not PANRole.ACKNOWLEDGER),
        key=lambda s: s.order,
    )
    for step in steps:
        mark = "<i>[Electronically Approved]</i>" if step.status is PANStepStatus.APPROVED else "&nbsp;"
        signatures.append(
            _signature_block(
                mark,
                step.name,
                approver_positions.get(step.user_id) or step.role.value.title(),
                step.role.value.upper(),
            )
        )

    employee_mark = (
        f'<img src="{_e(pan.signature_data_url)}" alt="Employee Signature">'
        if pan.signature_data_url else "&nbsp;"
    )
    signatures.append(
        _signature_block(employee_mark, pan.signature_name or "", "Employee's Name", "RECEIVED BY")
    )

    action_lines = "\n".join(f"<div>&#10003; {_e(label)}</div>" for label in pan.action_taken.labels())
    logo = f'<p style="text-align:center"><img src="{_e(pan.logo_url)}" alt="Company Logo"></p>' if pan.logo_url else ""

    values = {
        "logo": logo,
        "pan_id": _e(pan.id),
        "employee_name": _e(pan.employee_name),
        "effective_date": _e(pan.effective_date.isoformat()),
        "position": _e(position),
        "date_hired": _e(date_hired),
        "department": _e(department),
        "tenure": _e(pan.tenure),
        "action_taken": action_lines,
        "particulars": _particulars_rows(pan.particulars_from, pan.particulars_to, currency),
        "notes": _e(pan.notes),
        "signatures": "\n".join(signatures),
        "form_code": FORM_CODE,
    }
    return render_placeholders(PAN_LAYOUT, values, escape=False)
