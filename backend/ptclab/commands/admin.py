from __future__ import annotations

import logging

from sqlalchemy import delete

from .. import audit, models
from ..errors import InvalidRequest
from ..rbac import Capability
from . import command

# purpose: destructive maintenance restricted to administrators
# status: active

logger = logging.getLogger(__name__)

RESET_PHRASE = "RESET DATABASE"

# children before parents
OPERATIONAL_TABLES = (
    models.MediaHormone,
    models.Subculture,
    models.SpecimenTag,
    models.ComplianceRecord,
    models.Reminder,
    models.Attachment,
    models.Specimen,
    models.PreparedSolution,
    models.MediaBatch,
    models.InventoryItem,
    models.QrScan,
    models.ErrorLog,
    models.AuditLog,
)


@command("reset_database", Capability.ADMIN)
def reset_database(db, user, confirmation: str):
    """Wipe operational records; users, species, tags and sessions survive."""
    if (confirmation or "").strip() != RESET_PHRASE:
        raise InvalidRequest(f"Confirmation phrase did not match. Type exactly: {RESET_PHRASE}")
    for model in OPERATIONAL_TABLES:
        db.execute(delete(model))
    db.commit()
    logger.warning("Database reset by %s", user.username)
    audit.record(
        db, user.id, "reset", "database",
        details="Full database reset performed by admin",
    )
    return (
        "Database reset complete. Specimens, media, subcultures, inventory, compliance "
        "records and reminders have been cleared. Users and species definitions were preserved."
    )
