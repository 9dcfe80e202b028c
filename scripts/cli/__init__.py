"""
HRIS admin CLI -- operational commands for the approval-workflow system.

Create the schema, run the daily birthday job, and report tickets that are
past their SLA deadline.

Entry point: ``hris`` console script or ``python -m scripts.cli``
"""

from scripts.cli.main import main

__all__ = ["main"]
