from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models
from .auth import hash_password

# purpose: populate baseline reference data on first start
# status: active

logger = logging.getLogger(__name__)

BOOTSTRAP_ADMIN = {
    "username": "admin",
    "password": "admin",
    "display_name": "Administrator",
    "email": "admin@ptclab.local",
    "role": "admin",
}

DEFAULT_SPECIES = [
    ("Asparagus", "officinalis", "Asparagus", "ASP-OFF", 28),
    ("Nandina", "domestica", "Heavenly Bamboo", "NAN-DOM", 35),
    ("Citrus", "sinensis", "Sweet Orange", "CIT-SIN", 42),
    ("Citrus", "limon", "Lemon", "CIT-LIM", 42),
    ("Citrus", "paradisi", "Grapefruit", "CIT-PAR", 42),
    ("Citrus", "reticulata", "Mandarin", "CIT-RET", 42),
]

DEFAULT_TAGS: dict[str, list[tuple[str, str | None]]] = {
    "Health": [
        ("Vigor 1 - Poor", None),
        ("Vigor 2 - Fair", None),
        ("Vigor 3 - Good", None),
        ("Vigor 4 - Very Good", None),
        ("Vigor 5 - Excellent", None),
        ("Green", "#22c55e"),
        ("Yellow", "#eab308"),
        ("Brown", "#92400e"),
        ("Orange", "#f97316"),
        ("Purple", "#a855f7"),
        ("Black", "#1c1917"),
        ("Necrosis", "#dc2626"),
    ],
    "Disease": [
        ("Bacterial", "#ef4444"),
        ("Fungal", "#f59e0b"),
        ("Viral", "#8b5cf6"),
        ("Viroid", "#ec4899"),
        ("Unknown Pathogen", "#6b7280"),
    ],
    "Growth": [
        ("Callus Formation", "#84cc16"),
        ("Shoot Formation", "#22d3ee"),
        ("Root Formation", "#a78bfa"),
        ("Embryogenic", "#fb923c"),
    ],
    "Issue": [
        ("Contamination", "#dc2626"),
        ("Hyperhydricity", "#3b82f6"),
        ("Browning", "#92400e"),
    ],
    "Contamination Type": [
        ("Bacterial Contam.", "#ef4444"),
        ("Fungal Contam.", "#f59e0b"),
        ("Yeast Contam.", "#fbbf24"),
        ("Endogenous Contam.", "#d946ef"),
    ],
    "Action Needed": [
        ("Subculture Due", "#3b82f6"),
        ("Quarantine", "#dc2626"),
        ("Discard", "#1c1917"),
        ("Acclimatize", "#22c55e"),
    ],
}


def _is_empty(db: Session, model) -> bool:
    return db.query(func.count()).select_from(model).scalar() == 0


def seed_defaults(db: Session) -> dict[str, int]:
    """Insert each baseline group only when its table is still empty.

    Returns how many rows were added per table.
    """
    added = {"users": 0, "species": 0, "tags": 0}

    if _is_empty(db, models.User):
        db.add(
            models.User(
                username=BOOTSTRAP_ADMIN["username"],
                password_hash=hash_password(BOOTSTRAP_ADMIN["password"]),
                display_name=BOOTSTRAP_ADMIN["display_name"],
                email=BOOTSTRAP_ADMIN["email"],
                role=BOOTSTRAP_ADMIN["role"],
            )
        )
        added["users"] = 1

    if _is_empty(db, models.Species):
        for genus, species_name, common, code, interval in DEFAULT_SPECIES:
            db.add(
                models.Species(
                    genus=genus,
                    species_name=species_name,
                    common_name=common,
                    species_code=code,
                    default_subculture_interval_days=interval,
                )
            )
        added["species"] = len(DEFAULT_SPECIES)

    if _is_empty(db, models.Tag):
        for category, tags in DEFAULT_TAGS.items():
            root = models.Tag(name=category, category=category)
            db.add(root)
            db.flush()
            for name, color in tags:
                db.add(
                    models.Tag(name=name, category=category, parent_tag_id=root.id, color=color)
                )
            added["tags"] += 1 + len(tags)

    db.commit()
    if any(added.values()):
        logger.info("Seeded defaults: %s", added)
    return added
