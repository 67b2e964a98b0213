from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models

# purpose: human-readable identifiers derived from date, code and per-prefix sequence
# status: active

QR_PREFIX = "PTC:"
BATCH_PREFIX = "MB"


def next_sequence(db: Session, column, prefix: str) -> int:
    """Highest numeric suffix already issued under ``prefix``, plus one."""
    highest = 0
    for (value,) in db.execute(select(column).where(column.startswith(prefix, autoescape=True))):
        suffix = value[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest + 1


def accession_number(db: Session, initiation_date: date, species_code: str) -> str:
    prefix = f"{initiation_date.isoformat()}-{species_code}-"
    seq = next_sequence(db, models.Specimen.accession_number, prefix)
    return f"{prefix}{seq:03d}"


def qr_payload(accession: str) -> str:
    return f"{QR_PREFIX}{accession}"


def media_batch_id(db: Session, today: date) -> str:
    prefix = f"{BATCH_PREFIX}-{today.strftime('%Y%m%d')}-"
    seq = next_sequence(db, models.MediaBatch.batch_id, prefix)
    return f"{prefix}{seq:03d}"
