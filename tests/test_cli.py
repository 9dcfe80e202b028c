"""
Tests for the ``hris`` admin CLI.
"""

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest

from hris_kernel.db.engine import get_session, reset_engine
from hris_kernel.domain.clock import DeterministicClock
from hris_modules.employees import Role
from hris_modules.employees.service import EmployeeService
from hris_modules.helpdesk import TicketPriority
from hris_modules.helpdesk.service import HelpdeskService
from scripts.cli.main import main

SYSTEM_ACTOR_ID = uuid4()


@pytest.fixture
def db_url(tmp_path):
    yield f"sqlite:///{tmp_path / 'hris.db'}"
    reset_engine()


@pytest.fixture
def initialized(db_url, capsys):
    assert main(["--db-url", db_url, "init-db"]) == 0
    capsys.readouterr()
    return db_url


class TestCli:

    def test_init_db(self, db_url, capsys):
        assert main(["--db-url", db_url, "init-db"]) == 0
        assert "Schema created." in capsys.readouterr().out

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main([])

    def test_bad_config_file(self, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "missing.yaml"), "init-db"])
        assert code == 2
        assert "CONFIGURATION_ERROR" in capsys.readouterr().err

    def test_celebrate_birthdays(self, initialized, capsys):
        session = get_session()
        try:
            EmployeeService(session).register_employee(
                "Jamie Ocampo", "jamie@acme.test", Role.EMPLOYEE, SYSTEM_ACTOR_ID,
                birth_date=date(1994, 1, 5),
            )
        finally:
            session.close()

        assert main(["--db-url", initialized, "celebrate-birthdays", "--date", "2026-01-05"]) == 0
        assert "Birthday notifications: 1" in capsys.readouterr().out

    def test_sla_report_empty(self, initialized, capsys):
        assert main(["--db-url", initialized, "sla-report"]) == 0
        assert "No tickets past their SLA deadline." in capsys.readouterr().out

    def test_sla_report_lists_overdue(self, initialized, capsys):
        long_ago = DeterministicClock(datetime(2020, 3, 2, 8, 0, tzinfo=UTC))
        session = get_session()
        try:
            requester = EmployeeService(session, clock=long_ago).register_employee(
                "Rin Navarro", "rin@acme.test", Role.EMPLOYEE, SYSTEM_ACTOR_ID,
            )
            HelpdeskService(session, clock=long_ago).open_ticket(
                requester.id, "Printer jam", priority=TicketPriority.URGENT,
            )
        finally:
            session.close()

        assert main(["--db-url", initialized, "sla-report"]) == 0
        out = capsys.readouterr().out
        assert "Rin Navarro" in out
        assert "Overdue by" in out
        assert "1 overdue" in out
