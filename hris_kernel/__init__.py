"""
HRIS Kernel

Shared infrastructure for the HR approval workflows:
- Compare-and-swap status transitions over declarative workflows
- Single-transaction status change, notification and audit entry
- Hash-chained, append-only audit log
- Per-user notification inbox
- Signed storage URLs and escaped document templating
"""

__version__ = "0.1.0"
