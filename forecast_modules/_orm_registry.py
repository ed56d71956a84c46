"""
Module ORM Registry (``forecast_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before
``forecast_kernel.db.engine.create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Imported lazily by the kernel's
``create_tables()``; MUST NOT be imported at kernel module load time.
"""


def import_all_orm_models() -> None:
    """Import every ``forecast_modules.*.orm`` module to register ORM models.

    Idempotent -- repeated calls are harmless.
    """
    import forecast_modules.payroll.orm  # noqa: F401
