from __future__ import annotations

from .. import audit, backups
from ..rbac import Capability
from . import command

# purpose: user-triggered database backups
# status: active


@command("create_backup", Capability.MANAGE, with_state=True)
def create_backup(db, user, state, destination: str | None = None):
    # release the shared connection before checkpointing
    db.commit()
    info = backups.create_backup(
        state.engine, state.db_path, state.settings.backup_dir, destination
    )
    audit.record(
        db, user.id, "create", "backup",
        new_value=info.path, details="Database backup created",
    )
    return info


@command("list_backups", Capability.READ, with_state=True)
def list_backups(db, user, state):
    if state.degraded:
        return []
    return backups.list_backups(state.settings.backup_dir)
