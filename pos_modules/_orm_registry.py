"""
Module ORM Registry (``pos_modules._orm_registry``).

Ensure every kernel and module SQLAlchemy model is imported so that
``Base.metadata`` contains their table definitions before tables are
created.

Usage
-----
Entrypoints and ``tests/conftest.py`` call ``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel tables and every ``pos_modules.*.orm`` module.

    Idempotent; repeated calls are harmless.
    """
    import pos_kernel.services.sequence_service  # noqa: F401  # sequence_counters
    # fmt: off
    import pos_modules.catalog.orm  # noqa: F401
    import pos_modules.inventory.orm  # noqa: F401
    import pos_modules.purchasing.orm  # noqa: F401
    # fmt: on


def create_all_tables() -> None:
    """Create kernel + module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from pos_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
