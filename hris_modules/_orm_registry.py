"""
Module ORM Registry (``hris_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.

Architecture position
---------------------
**Modules layer** -- utility.  Imported lazily by
``hris_kernel.db.engine.create_tables()`` and by ``tests/conftest.py``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``hris_modules.*.orm`` module.

    Employees come first: every other module references ``employees.id``.
    Idempotent -- repeated calls are harmless.
    """
    import hris_kernel.models  # noqa: F401
    # fmt: off
    import hris_modules.employees.orm  # noqa: F401
    import hris_modules.announcements.orm  # noqa: F401
    import hris_modules.assets.orm  # noqa: F401
    import hris_modules.benefits.orm  # noqa: F401
    import hris_modules.coe.orm  # noqa: F401
    import hris_modules.helpdesk.orm  # noqa: F401
    import hris_modules.pan.orm  # noqa: F401
    import hris_modules.recruitment.orm  # noqa: F401
    # fmt: on
