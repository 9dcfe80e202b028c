"""
Configuration schema (``hris_config.schema``).

Frozen dataclasses for the HRIS runtime configuration.  Parsed from YAML by
``hris_config.loader``; obtained at runtime only through
``hris_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StorageConfig:
    """Object storage used for attachments, signatures and proofs."""

    base_url: str
    signing_secret: str
    signed_url_ttl_seconds: int = 86400
    announcements_bucket: str = "announcements_attachments"
    documents_bucket: str = "documents"


@dataclass(frozen=True)
class HrisConfig:
    """
    Root configuration.

    Role groups are tuples of ``Role`` values (see hris_modules.employees):

    * ``hr_roles`` -- may endorse / approve / reject at the HR step
    * ``board_roles`` -- may be selected as board reviewers
    * ``fulfillment_roles`` -- receive "ready for fulfillment" notices and
      may fulfill approved benefit requests
    """

    database_url: str
    currency: str
    company_name: str
    hr_roles: tuple[str, ...]
    board_roles: tuple[str, ...]
    fulfillment_roles: tuple[str, ...]
    storage: StorageConfig
    ticket_sla_hours: dict[str, int] = field(default_factory=dict)
    enforce_pan_routing_order: bool = False
    checksum: str = ""

    def sla_hours_for(self, priority: str) -> int:
        """SLA window for a ticket priority; falls back to the ``default`` entry."""
        return self.ticket_sla_hours.get(priority, self.ticket_sla_hours.get("default", 72))
