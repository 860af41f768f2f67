"""Alembic helpers: report the schema revision and upgrade to head on demand."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine


logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"
VERSION_TABLE = "alembic_version"
# pg_advisory_lock key shared by every API worker
UPGRADE_LOCK_KEY = 7310442


@dataclass(frozen=True)
class MigrationStatus:
    current_heads: tuple[str, ...]
    head_revisions: tuple[str, ...]
    pending: tuple[str, ...]

    @property
    def is_up_to_date(self) -> bool:
        return set(self.current_heads) == set(self.head_revisions)


class MigrationError(RuntimeError):
    """Raised when an upgrade finishes without reaching head."""


def alembic_config(engine: Engine) -> Config:
    """Alembic config pointed at the engine's database."""
    if not ALEMBIC_INI.is_file():
        raise FileNotFoundError(f"Alembic config not found at {ALEMBIC_INI}")
    config = Config(str(ALEMBIC_INI))
    # ConfigParser interpolates '%'
    url = engine.url.render_as_string(hide_password=False)
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def get_migration_status(engine: Engine) -> MigrationStatus:
    script = ScriptDirectory.from_config(alembic_config(engine))
    heads = tuple(script.get_heads())

    with engine.connect() as connection:
        current = _applied_heads(connection)

    pending = tuple(
        revision.revision
        for revision in script.iterate_revisions(heads, current or "base")
        if revision.revision not in current
    )
    return MigrationStatus(current_heads=current, head_revisions=heads, pending=pending)


def ensure_migrations(engine: Engine, auto_migrate: bool) -> MigrationStatus:
    """
    Bring the schema to head when auto_migrate is set.

    Without auto_migrate a stale schema is only logged; the caller decides
    whether to serve traffic.

    Raises:
        MigrationError: Upgrade ran but the database is still behind
    """
    status = get_migration_status(engine)
    if status.is_up_to_date:
        return status
    if not auto_migrate:
        logger.warning(
            "Database is behind migrations: %d pending (current=%s, head=%s)",
            len(status.pending),
            status.current_heads,
            status.head_revisions,
        )
        return status

    logger.info("Applying %d migration(s): %s", len(status.pending), ", ".join(status.pending))
    _upgrade(engine)

    status = get_migration_status(engine)
    if not status.is_up_to_date:
        raise MigrationError(f"Database still behind head after upgrade: {status.pending}")
    return status


def _applied_heads(connection: Connection) -> tuple[str, ...]:
    if VERSION_TABLE not in inspect(connection).get_table_names():
        return ()
    return tuple(MigrationContext.configure(connection).get_current_heads())


def _upgrade(engine: Engine) -> None:
    config = alembic_config(engine)
    if engine.dialect.name != "postgresql":
        command.upgrade(config, "head")
        return

    # Serialize concurrent workers; alembic/env.py reuses this connection
    with engine.connect() as connection, _upgrade_lock(connection):
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
        connection.commit()


@contextmanager
def _upgrade_lock(connection: Connection) -> Iterator[None]:
    connection.execute(text("SELECT pg_advisory_lock(:key)"), {"key": UPGRADE_LOCK_KEY})
    connection.commit()
    try:
        yield
    finally:
        try:
            connection.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": UPGRADE_LOCK_KEY})
            connection.commit()
        except Exception as exc:
            logger.warning("Failed to release migration lock: %s", exc)
