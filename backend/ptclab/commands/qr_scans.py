from __future__ import annotations

from sqlalchemy import select

from .. import models, schemas
from ..rbac import Capability
from . import command

RECENT_LIMIT = 200


@command("store_qr_scan")
def store_qr_scan(db, user, raw_data: str, accession_number: str | None = None):
    scan = models.QrScan(raw_data=raw_data, accession_number=accession_number, scanned_by=user.id)
    db.add(scan)
    db.commit()
    return schemas.QrScanOut.model_validate(scan)


@command("list_qr_scans", Capability.READ)
def list_qr_scans(db, user):
    rows = db.execute(
        select(models.QrScan)
        .order_by(models.QrScan.scanned_at.desc(), models.QrScan.id.desc())
        .limit(RECENT_LIMIT)
    ).scalars()
    return [schemas.QrScanOut.model_validate(row) for row in rows]
