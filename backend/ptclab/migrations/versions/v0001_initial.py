"""initial schema"""

import sqlalchemy as sa

from .. import AdditiveStep, Migration

STAGES_V1 = (
    "explant", "callus", "suspension", "protoplast", "shoot", "root",
    "embryogenic", "plantlet", "acclimatized", "stock", "archived", "custom",
)
PROPAGATION_METHODS = (
    "microprop", "somatic_embryogenesis", "organogenesis",
    "meristem_culture", "anther_culture", "protoplast_fusion", "other",
)
ACCLIMATIZATION_STATUSES = (
    "not_applicable", "in_vitro", "hardening", "greenhouse", "field", "completed",
)


def one_of(column: str, values, nullable: bool = False) -> sa.CheckConstraint:
    listed = ",".join(f"'{v}'" for v in values)
    clause = f"{column} IN ({listed})"
    if nullable:
        clause = f"{column} IS NULL OR {clause}"
    return sa.CheckConstraint(clause)


def timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def specimen_columns(stages, *, employee_id: bool = False):
    """Column set of the specimens table for a given stage vocabulary."""
    columns = [
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("accession_number", sa.String(), nullable=False, unique=True),
        sa.Column("species_id", sa.String(), sa.ForeignKey("species.id"), nullable=False),
        sa.Column("project_id", sa.String(), sa.ForeignKey("projects.id")),
        sa.Column("stage", sa.String(), nullable=False, server_default="explant"),
        sa.Column("custom_stage", sa.String()),
        sa.Column("provenance", sa.String()),
        sa.Column("source_plant", sa.String()),
        sa.Column("initiation_date", sa.Date(), nullable=False),
        sa.Column("location", sa.String()),
        sa.Column("location_details", sa.String()),
        sa.Column("propagation_method", sa.String()),
        sa.Column("acclimatization_status", sa.String()),
        sa.Column("health_status", sa.String(), server_default="healthy"),
        sa.Column("disease_status", sa.String()),
        sa.Column("quarantine_flag", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("quarantine_release_date", sa.Date()),
        sa.Column("permit_number", sa.String()),
        sa.Column("permit_expiry", sa.Date()),
        sa.Column("ip_flag", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("ip_notes", sa.Text()),
        sa.Column("environmental_notes", sa.Text()),
        sa.Column("subculture_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("parent_specimen_id", sa.String(), sa.ForeignKey("specimens.id")),
        sa.Column("qr_code_data", sa.String()),
        sa.Column("notes", sa.Text()),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("archived_at", sa.DateTime()),
    ]
    if employee_id:
        columns.append(sa.Column("employee_id", sa.String()))
    columns += [
        sa.Column("created_by", sa.String(), sa.ForeignKey("users.id")),
        *timestamps(),
        one_of("stage", stages),
        one_of("propagation_method", PROPAGATION_METHODS, nullable=True),
        one_of("acclimatization_status", ACCLIMATIZATION_STATUSES, nullable=True),
    ]
    return columns


SPECIMEN_INDEXES = (
    ("idx_specimens_accession", ("accession_number",)),
    ("idx_specimens_species", ("species_id",)),
    ("idx_specimens_project", ("project_id",)),
    ("idx_specimens_stage", ("stage",)),
    ("idx_specimens_quarantine", ("quarantine_flag",)),
    ("idx_specimens_archived", ("is_archived",)),
)


def create_core_tables(op, connection):
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("username", sa.String(), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("email", sa.String()),
        sa.Column("role", sa.String(), nullable=False, server_default="tech"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *timestamps(),
        one_of("role", ("admin", "supervisor", "tech", "guest")),
    )
    op.create_table(
        "sessions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "species",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("genus", sa.String(), nullable=False),
        sa.Column("species_name", sa.String(), nullable=False),
        sa.Column("common_name", sa.String()),
        sa.Column("species_code", sa.String(), nullable=False, unique=True),
        sa.Column("default_subculture_interval_days", sa.Integer(), server_default=sa.text("28")),
        sa.Column("notes", sa.Text()),
        *timestamps(),
    )
    op.create_table(
        "projects",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("lead_user_id", sa.String(), sa.ForeignKey("users.id")),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        *timestamps(),
        one_of("status", ("active", "paused", "completed", "archived")),
    )
    op.create_table("specimens", *specimen_columns(STAGES_V1))
    for name, columns in SPECIMEN_INDEXES:
        op.create_index(name, "specimens", list(columns))

    op.create_table(
        "tags",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("parent_tag_id", sa.String(), sa.ForeignKey("tags.id")),
        sa.Column("color", sa.String()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_table(
        "specimen_tags",
        sa.Column("specimen_id", sa.String(), sa.ForeignKey("specimens.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("tag_id", sa.String(), sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("value", sa.String()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )


def create_lab_tables(op, connection):
    op.create_table(
        "media_batches",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("batch_id", sa.String(), nullable=False, unique=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("preparation_date", sa.Date(), nullable=False),
        sa.Column("expiration_date", sa.Date()),
        sa.Column("basal_salts", sa.String(), server_default="MS"),
        sa.Column("basal_salts_concentration", sa.Float(), server_default=sa.text("1.0")),
        sa.Column("vitamins", sa.String()),
        sa.Column("sucrose_g_per_l", sa.Float()),
        sa.Column("agar_g_per_l", sa.Float()),
        sa.Column("gelling_agent", sa.String()),
        sa.Column("ph_before_autoclave", sa.Float()),
        sa.Column("ph_after_autoclave", sa.Float()),
        sa.Column("sterilization_method", sa.String(), server_default="autoclave"),
        sa.Column("volume_prepared_ml", sa.Float()),
        sa.Column("volume_used_ml", sa.Float(), server_default=sa.text("0")),
        sa.Column("volume_remaining_ml", sa.Float()),
        sa.Column("storage_conditions", sa.String()),
        sa.Column("qc_notes", sa.Text()),
        sa.Column("supplier_info", sa.String()),
        sa.Column("cost_per_batch", sa.Float()),
        sa.Column("osmolarity", sa.Float()),
        sa.Column("conductivity", sa.Float()),
        sa.Column("is_custom", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("needs_review", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by", sa.String(), sa.ForeignKey("users.id")),
        *timestamps(),
    )
    op.create_table(
        "media_hormones",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("media_batch_id", sa.String(), sa.ForeignKey("media_batches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hormone_name", sa.String(), nullable=False),
        sa.Column("hormone_type", sa.String()),
        sa.Column("concentration_mg_per_l", sa.Float(), nullable=False),
        sa.Column("supplier", sa.String()),
        sa.Column("lot_number", sa.String()),
        sa.Column("reagent_batch_id", sa.String()),
        one_of("hormone_type", ("auxin", "cytokinin", "gibberellin", "other"), nullable=True),
    )
    op.create_table(
        "subcultures",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("specimen_id", sa.String(), sa.ForeignKey("specimens.id", ondelete="CASCADE"), nullable=False),
        sa.Column("passage_number", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("media_batch_id", sa.String(), sa.ForeignKey("media_batches.id")),
        sa.Column("ph", sa.Float()),
        sa.Column("temperature_c", sa.Float()),
        sa.Column("light_cycle", sa.String()),
        sa.Column("light_intensity_lux", sa.Float()),
        sa.Column("experimental_treatment", sa.String()),
        sa.Column("vessel_type", sa.String()),
        sa.Column("vessel_size", sa.String()),
        sa.Column("vessel_material", sa.String()),
        sa.Column("vessel_lid_type", sa.String()),
        sa.Column("location_from", sa.String()),
        sa.Column("location_to", sa.String()),
        sa.Column("temp_before", sa.Float()),
        sa.Column("temp_after", sa.Float()),
        sa.Column("humidity_before", sa.Float()),
        sa.Column("humidity_after", sa.Float()),
        sa.Column("light_before", sa.String()),
        sa.Column("light_after", sa.String()),
        sa.Column("exposure_duration_hours", sa.Float()),
        sa.Column("notes", sa.Text()),
        sa.Column("observations", sa.Text()),
        sa.Column("performed_by", sa.String(), sa.ForeignKey("users.id")),
        *timestamps(),
    )
    op.create_index("idx_subcultures_specimen", "subcultures", ["specimen_id"])
    op.create_index("idx_subcultures_date", "subcultures", ["date"])

    op.create_table(
        "attachments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("file_path", sa.String(), nullable=False),
        sa.Column("file_size_bytes", sa.Integer()),
        sa.Column("mime_type", sa.String()),
        sa.Column("description", sa.Text()),
        sa.Column("uploaded_by", sa.String(), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        one_of("entity_type", ("specimen", "subculture", "media_batch", "compliance")),
    )
    op.create_index("idx_attachments_entity", "attachments", ["entity_type", "entity_id"])

    op.create_table(
        "reminders",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("specimen_id", sa.String(), sa.ForeignKey("specimens.id", ondelete="CASCADE")),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("reminder_type", sa.String(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("recurrence_days", sa.Integer()),
        sa.Column("recurrence_rule", sa.String()),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("snooze_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("urgency", sa.String(), nullable=False, server_default="normal"),
        sa.Column("assigned_to", sa.String(), sa.ForeignKey("users.id")),
        sa.Column("created_by", sa.String(), sa.ForeignKey("users.id")),
        *timestamps(),
        one_of("reminder_type", (
            "subculture_due", "media_expiry", "disease_test", "permit_expiry",
            "quarantine_review", "custom",
        )),
        one_of("status", ("active", "snoozed", "dismissed", "completed")),
        one_of("urgency", ("low", "normal", "high", "critical")),
    )
    op.create_index("idx_reminders_due", "reminders", ["due_date"])
    op.create_index("idx_reminders_status", "reminders", ["status"])
    op.create_index("idx_reminders_specimen", "reminders", ["specimen_id"])

    op.create_table(
        "compliance_records",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("specimen_id", sa.String(), sa.ForeignKey("specimens.id", ondelete="CASCADE"), nullable=False),
        sa.Column("record_type", sa.String(), nullable=False),
        sa.Column("agency", sa.String()),
        sa.Column("permit_number", sa.String()),
        sa.Column("permit_expiry", sa.Date()),
        sa.Column("test_type", sa.String()),
        sa.Column("test_method", sa.String()),
        sa.Column("test_date", sa.Date()),
        sa.Column("test_lab", sa.String()),
        sa.Column("test_result", sa.String()),
        sa.Column("status", sa.String(), nullable=False, server_default="valid"),
        sa.Column("flag_reason", sa.Text()),
        sa.Column("chain_of_custody", sa.Text()),
        sa.Column("notes", sa.Text()),
        sa.Column("document_path", sa.String()),
        sa.Column("created_by", sa.String(), sa.ForeignKey("users.id")),
        *timestamps(),
        one_of("record_type", (
            "disease_test", "permit", "phytosanitary_cert", "inspection",
            "quarantine", "movement_permit", "pest_risk", "export_cert", "other",
        )),
        one_of("agency", ("USDA_APHIS", "TX_AG", "FL_FDACS", "other"), nullable=True),
        one_of("test_result", ("positive", "negative", "inconclusive", "pending"), nullable=True),
        one_of("status", ("valid", "expired", "pending", "flagged", "revoked")),
    )
    op.create_index("idx_compliance_specimen", "compliance_records", ["specimen_id"])
    op.create_index("idx_compliance_type", "compliance_records", ["record_type"])
    op.create_index("idx_compliance_status", "compliance_records", ["status"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("unit", sa.String(), nullable=False),
        sa.Column("current_stock", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("minimum_stock", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("reorder_point", sa.Float()),
        sa.Column("supplier", sa.String()),
        sa.Column("catalog_number", sa.String()),
        sa.Column("lot_number", sa.String()),
        sa.Column("storage_location", sa.String()),
        sa.Column("expiration_date", sa.Date()),
        sa.Column("cost_per_unit", sa.Float()),
        sa.Column("notes", sa.Text()),
        *timestamps(),
        one_of("category", (
            "media_ingredient", "vessel", "hormone", "chemical",
            "consumable", "equipment", "other",
        )),
    )


def create_audit_log(op, connection):
    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("user_id", sa.String(), sa.ForeignKey("users.id")),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String()),
        sa.Column("old_value", sa.Text()),
        sa.Column("new_value", sa.Text()),
        sa.Column("ip_address", sa.String()),
        sa.Column("details", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("idx_audit_user", "audit_log", ["user_id"])
    op.create_index("idx_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("idx_audit_created", "audit_log", ["created_at"])


migration = Migration(
    version=1,
    name="initial",
    steps=(
        AdditiveStep("users, sessions, species, projects, specimens, tags", create_core_tables),
        AdditiveStep("media, subcultures, reminders, compliance, inventory", create_lab_tables),
        AdditiveStep("audit log", create_audit_log),
    ),
)
