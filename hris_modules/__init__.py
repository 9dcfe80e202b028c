"""
HRIS domain modules.

Each module is a thin layer over ``hris_kernel``:

* ``models.py``    -- enums and frozen DTOs (the nouns)
* ``orm.py``       -- SQLAlchemy persistence with ``to_dto()``
* ``workflows.py`` -- the request lifecycle as a kernel ``Workflow``
* ``helpers.py``   -- pure rules shared by UI validation and the service
* ``service.py``   -- the transaction-owning facade
"""
