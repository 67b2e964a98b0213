from __future__ import annotations

import csv
import io
import json

from sqlalchemy import select

from .. import models
from ..rbac import Capability
from . import command

# purpose: flat exports of the active specimen registry
# status: active

CSV_HEADER = [
    "Accession",
    "Species Code",
    "Species",
    "Stage",
    "Provenance",
    "Initiation Date",
    "Location",
    "Health Status",
    "Quarantine",
    "Subculture Count",
    "Notes",
]


def _export_rows(db):
    specimen, species = models.Specimen, models.Species
    return db.execute(
        select(
            specimen.accession_number,
            species.species_code,
            (species.genus + " " + species.species_name).label("species_name"),
            specimen.stage,
            specimen.provenance,
            specimen.initiation_date,
            specimen.location,
            specimen.health_status,
            specimen.quarantine_flag,
            specimen.subculture_count,
            specimen.notes,
        )
        .outerjoin(species, specimen.species_id == species.id)
        .where(specimen.is_archived.is_(False))
        .order_by(specimen.accession_number)
    ).all()


@command("export_specimens_csv", Capability.READ)
def export_specimens_csv(db, user) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in _export_rows(db):
        writer.writerow(
            [
                row.accession_number,
                row.species_code or "",
                row.species_name or "",
                row.stage,
                row.provenance or "",
                row.initiation_date.isoformat(),
                row.location or "",
                row.health_status or "",
                "Yes" if row.quarantine_flag else "No",
                row.subculture_count,
                row.notes or "",
            ]
        )
    return buffer.getvalue()


@command("export_specimens_json", Capability.READ)
def export_specimens_json(db, user) -> str:
    records = [
        {
            "accession_number": row.accession_number,
            "species_code": row.species_code or "",
            "species_name": row.species_name or "",
            "stage": row.stage,
            "provenance": row.provenance,
            "initiation_date": row.initiation_date.isoformat(),
            "location": row.location,
            "health_status": row.health_status,
            "quarantine_flag": bool(row.quarantine_flag),
            "subculture_count": row.subculture_count,
            "notes": row.notes,
        }
        for row in _export_rows(db)
    ]
    return json.dumps(records, indent=2)
