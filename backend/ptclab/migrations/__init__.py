from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence, Union

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.engine import Connection, Engine

from ..database import utcnow
from ..errors import MigrationFailure

# purpose: versioned, idempotent schema evolution for the local database file
# status: active

logger = logging.getLogger(__name__)

schema_version = sa.table(
    "schema_version",
    sa.column("version", sa.Integer),
    sa.column("applied_at", sa.DateTime),
)


@dataclass(frozen=True)
class AdditiveStep:
    """New tables, indexes or columns; runs with foreign keys enforced."""

    description: str
    apply: Callable[[Operations, Connection], None]

    def run(self, op: Operations, connection: Connection) -> None:
        self.apply(op, connection)


@dataclass(frozen=True)
class RebuildStep:
    """Shadow-table rebuild for shape changes ALTER TABLE cannot express.

    ``build`` returns the columns and constraints of the new table shape.
    ``copy_columns`` are carried over from the current table; ``transforms``
    maps a column name to a callable that rewrites the source column into a
    value acceptable to the new constraints.
    """

    table: str
    build: Callable[[], Sequence[sa.schema.SchemaItem]]
    copy_columns: Sequence[str]
    transforms: dict[str, Callable[[sa.ColumnElement], sa.ColumnElement]] = field(
        default_factory=dict
    )
    indexes: Sequence[tuple[str, Sequence[str]]] = ()

    @property
    def shadow(self) -> str:
        return f"{self.table}_rebuild"

    def run(self, op: Operations, connection: Connection) -> None:
        op.create_table(self.shadow, *self.build())
        source = sa.table(self.table, *[sa.column(name) for name in self.copy_columns])
        target = sa.table(self.shadow, *[sa.column(name) for name in self.copy_columns])
        selected = []
        for name in self.copy_columns:
            column = source.c[name]
            transform = self.transforms.get(name)
            selected.append(transform(column).label(name) if transform else column)
        connection.execute(
            sa.insert(target).from_select(list(self.copy_columns), sa.select(*selected))
        )
        op.drop_table(self.table)
        op.rename_table(self.shadow, self.table)
        for index_name, columns in self.indexes:
            op.create_index(index_name, self.table, list(columns))


Step = Union[AdditiveStep, RebuildStep]


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    steps: Sequence[Step]

    @property
    def rebuilds(self) -> bool:
        return any(isinstance(step, RebuildStep) for step in self.steps)


def _ensure_version_table(connection: Connection) -> None:
    with connection.begin():
        connection.exec_driver_sql(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "version INTEGER PRIMARY KEY, "
            "applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP)"
        )


def current_version(connection: Connection) -> int:
    """Highest applied version, 0 for a fresh database."""
    try:
        if not sa.inspect(connection).has_table("schema_version"):
            return 0
        value = connection.execute(
            sa.select(sa.func.coalesce(sa.func.max(schema_version.c.version), 0))
        ).scalar_one()
        return int(value)
    finally:
        if connection.in_transaction():
            connection.commit()


def _set_foreign_keys(connection: Connection, enabled: bool) -> None:
    # the pragma is ignored inside a transaction, so it goes to the driver directly
    connection.connection.driver_connection.execute(
        f"PRAGMA foreign_keys={'ON' if enabled else 'OFF'}"
    )


def _apply_one(connection: Connection, migration: Migration) -> None:
    op = Operations(MigrationContext.configure(connection))
    with connection.begin():
        for step in migration.steps:
            step.run(op, connection)
        if migration.rebuilds:
            violations = connection.exec_driver_sql("PRAGMA foreign_key_check").fetchall()
            if violations:
                raise RuntimeError(f"foreign key check failed: {violations[:5]}")
        connection.execute(
            sa.insert(schema_version).values(version=migration.version, applied_at=utcnow())
        )


def apply_migrations(
    connection: Connection, migrations: Sequence[Migration] | None = None
) -> int:
    """Apply every migration newer than the stored version, in order.

    Safe to call on every start. Each version commits on its own; the first
    failure rolls back that version and raises ``MigrationFailure``.
    Returns the resulting schema version.
    """
    if migrations is None:
        from .versions import MIGRATIONS

        migrations = MIGRATIONS
    if connection.in_transaction():
        connection.commit()
    _ensure_version_table(connection)
    applied = current_version(connection)
    for migration in sorted(migrations, key=lambda m: m.version):
        if migration.version <= applied:
            continue
        logger.info("Applying migration %s (%s)", migration.version, migration.name)
        if migration.rebuilds:
            _set_foreign_keys(connection, False)
        try:
            _apply_one(connection, migration)
        except Exception as exc:
            logger.error("Migration %s (%s) failed: %s", migration.version, migration.name, exc)
            raise MigrationFailure(migration.version, migration.name, exc) from exc
        finally:
            if migration.rebuilds:
                _set_foreign_keys(connection, True)
        applied = migration.version
    return applied


def migrate_engine(engine: Engine, migrations: Sequence[Migration] | None = None) -> int:
    with engine.connect() as connection:
        return apply_migrations(connection, migrations)
