"""meristem stages, employee ids, liquid stock and prepared solutions"""

import sqlalchemy as sa

from .. import AdditiveStep, Migration, RebuildStep
from .v0001_initial import SPECIMEN_INDEXES, specimen_columns

STAGES_V2 = (
    "explant", "callus", "suspension", "protoplast",
    "shoot", "shoot_meristem", "apical_meristem",
    "root", "root_meristem",
    "embryogenic", "plantlet", "acclimatized", "stock", "archived", "custom",
)

# every specimens column that existed before this version
CARRIED_SPECIMEN_COLUMNS = (
    "id", "accession_number", "species_id", "project_id", "stage", "custom_stage",
    "provenance", "source_plant", "initiation_date", "location", "location_details",
    "propagation_method", "acclimatization_status", "health_status", "disease_status",
    "quarantine_flag", "quarantine_release_date", "permit_number", "permit_expiry",
    "ip_flag", "ip_notes", "environmental_notes", "subculture_count", "parent_specimen_id",
    "qr_code_data", "notes", "is_archived", "archived_at", "created_by",
    "created_at", "updated_at",
)


def known_stage_or_custom(column):
    return sa.case((column.in_(STAGES_V2), column), else_=sa.literal("custom"))


def add_columns(op, connection):
    op.add_column("inventory_items", sa.Column("physical_state", sa.String(), server_default="solid"))
    op.add_column("inventory_items", sa.Column("concentration", sa.Float()))
    op.add_column("inventory_items", sa.Column("concentration_unit", sa.String()))

    op.add_column("media_batches", sa.Column("employee_id", sa.String()))

    op.add_column("subcultures", sa.Column("employee_id", sa.String()))
    op.add_column("subcultures", sa.Column("health_status", sa.String()))

    op.add_column("media_hormones", sa.Column("amount_used", sa.Float()))
    op.add_column("media_hormones", sa.Column("amount_unit", sa.String()))


def create_prepared_solutions(op, connection):
    op.create_table(
        "prepared_solutions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("source_item_id", sa.String(), sa.ForeignKey("inventory_items.id")),
        sa.Column("source_item_name", sa.String()),
        sa.Column("concentration", sa.Float(), nullable=False),
        sa.Column("concentration_unit", sa.String(), nullable=False),
        sa.Column("solvent", sa.String()),
        sa.Column("volume_ml", sa.Float(), nullable=False),
        sa.Column("volume_remaining_ml", sa.Float(), nullable=False),
        sa.Column("prepared_by", sa.String()),
        sa.Column("preparation_date", sa.Date(), nullable=False),
        sa.Column("expiration_date", sa.Date()),
        sa.Column("storage_conditions", sa.String()),
        sa.Column("lot_number", sa.String()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )


migration = Migration(
    version=2,
    name="specimen_stages",
    steps=(
        RebuildStep(
            table="specimens",
            build=lambda: specimen_columns(STAGES_V2, employee_id=True),
            copy_columns=CARRIED_SPECIMEN_COLUMNS,
            transforms={"stage": known_stage_or_custom},
            indexes=SPECIMEN_INDEXES,
        ),
        AdditiveStep("employee ids, liquid stock and hormone usage columns", add_columns),
        AdditiveStep("prepared solutions", create_prepared_solutions),
    ),
)
