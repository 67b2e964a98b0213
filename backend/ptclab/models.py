from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    Float,
)
from sqlalchemy.orm import relationship

from .database import Base, new_id, utcnow


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=new_id)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    email = Column(String)
    role = Column(String, nullable=False, default="tech")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class UserSession(Base):
    __tablename__ = "sessions"
    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    token = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User")


class Species(Base):
    __tablename__ = "species"
    id = Column(String, primary_key=True, default=new_id)
    genus = Column(String, nullable=False)
    species_name = Column(String, nullable=False)
    common_name = Column(String)
    species_code = Column(String, unique=True, nullable=False)
    default_subculture_interval_days = Column(Integer, default=28)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class Project(Base):
    __tablename__ = "projects"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    description = Column(Text)
    lead_user_id = Column(String, ForeignKey("users.id"))
    status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class Specimen(Base):
    __tablename__ = "specimens"
    id = Column(String, primary_key=True, default=new_id)
    accession_number = Column(String, unique=True, nullable=False)
    species_id = Column(String, ForeignKey("species.id"), nullable=False)
    project_id = Column(String, ForeignKey("projects.id"))
    stage = Column(String, nullable=False, default="explant")
    custom_stage = Column(String)
    provenance = Column(String)
    source_plant = Column(String)
    initiation_date = Column(Date, nullable=False)
    location = Column(String)
    location_details = Column(String)
    propagation_method = Column(String)
    acclimatization_status = Column(String)
    health_status = Column(String, default="healthy")
    disease_status = Column(String)
    quarantine_flag = Column(Boolean, nullable=False, default=False)
    quarantine_release_date = Column(Date)
    permit_number = Column(String)
    permit_expiry = Column(Date)
    ip_flag = Column(Boolean, nullable=False, default=False)
    ip_notes = Column(Text)
    environmental_notes = Column(Text)
    subculture_count = Column(Integer, nullable=False, default=0)
    parent_specimen_id = Column(String, ForeignKey("specimens.id"))
    qr_code_data = Column(String)
    notes = Column(Text)
    is_archived = Column(Boolean, nullable=False, default=False)
    archived_at = Column(DateTime)
    employee_id = Column(String)
    created_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    species = relationship("Species")
    project = relationship("Project")


class Tag(Base):
    __tablename__ = "tags"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    parent_tag_id = Column(String, ForeignKey("tags.id"))
    color = Column(String)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class SpecimenTag(Base):
    __tablename__ = "specimen_tags"
    specimen_id = Column(
        String, ForeignKey("specimens.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id = Column(String, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    value = Column(String)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class MediaBatch(Base):
    __tablename__ = "media_batches"
    id = Column(String, primary_key=True, default=new_id)
    batch_id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    preparation_date = Column(Date, nullable=False)
    expiration_date = Column(Date)
    basal_salts = Column(String, default="MS")
    basal_salts_concentration = Column(Float, default=1.0)
    vitamins = Column(String)
    sucrose_g_per_l = Column(Float)
    agar_g_per_l = Column(Float)
    gelling_agent = Column(String)
    ph_before_autoclave = Column(Float)
    ph_after_autoclave = Column(Float)
    sterilization_method = Column(String, default="autoclave")
    volume_prepared_ml = Column(Float)
    volume_used_ml = Column(Float, default=0)
    volume_remaining_ml = Column(Float)
    storage_conditions = Column(String)
    qc_notes = Column(Text)
    supplier_info = Column(String)
    cost_per_batch = Column(Float)
    osmolarity = Column(Float)
    conductivity = Column(Float)
    is_custom = Column(Boolean, nullable=False, default=False)
    needs_review = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)
    employee_id = Column(String)
    created_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    hormones = relationship(
        "MediaHormone",
        order_by="MediaHormone.hormone_name",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class MediaHormone(Base):
    __tablename__ = "media_hormones"
    id = Column(String, primary_key=True, default=new_id)
    media_batch_id = Column(
        String, ForeignKey("media_batches.id", ondelete="CASCADE"), nullable=False
    )
    hormone_name = Column(String, nullable=False)
    hormone_type = Column(String)
    concentration_mg_per_l = Column(Float, nullable=False)
    supplier = Column(String)
    lot_number = Column(String)
    reagent_batch_id = Column(String)
    amount_used = Column(Float)
    amount_unit = Column(String)


class Subculture(Base):
    __tablename__ = "subcultures"
    id = Column(String, primary_key=True, default=new_id)
    specimen_id = Column(
        String, ForeignKey("specimens.id", ondelete="CASCADE"), nullable=False
    )
    passage_number = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    media_batch_id = Column(String, ForeignKey("media_batches.id"))
    ph = Column(Float)
    temperature_c = Column(Float)
    light_cycle = Column(String)
    light_intensity_lux = Column(Float)
    experimental_treatment = Column(String)
    vessel_type = Column(String)
    vessel_size = Column(String)
    vessel_material = Column(String)
    vessel_lid_type = Column(String)
    location_from = Column(String)
    location_to = Column(String)
    temp_before = Column(Float)
    temp_after = Column(Float)
    humidity_before = Column(Float)
    humidity_after = Column(Float)
    light_before = Column(String)
    light_after = Column(String)
    exposure_duration_hours = Column(Float)
    notes = Column(Text)
    observations = Column(Text)
    performed_by = Column(String, ForeignKey("users.id"))
    employee_id = Column(String)
    health_status = Column(String)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    performer = relationship("User")
    media_batch = relationship("MediaBatch")


class Attachment(Base):
    __tablename__ = "attachments"
    id = Column(String, primary_key=True, default=new_id)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    file_size_bytes = Column(Integer)
    mime_type = Column(String)
    description = Column(Text)
    uploaded_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Reminder(Base):
    __tablename__ = "reminders"
    id = Column(String, primary_key=True, default=new_id)
    specimen_id = Column(String, ForeignKey("specimens.id", ondelete="CASCADE"))
    title = Column(String, nullable=False)
    description = Column(Text)
    reminder_type = Column(String, nullable=False)
    due_date = Column(Date, nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_days = Column(Integer)
    recurrence_rule = Column(String)
    status = Column(String, nullable=False, default="active")
    snooze_count = Column(Integer, nullable=False, default=0)
    urgency = Column(String, nullable=False, default="normal")
    assigned_to = Column(String, ForeignKey("users.id"))
    created_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    specimen = relationship("Specimen")
    assignee = relationship("User", foreign_keys=[assigned_to])


class ComplianceRecord(Base):
    __tablename__ = "compliance_records"
    id = Column(String, primary_key=True, default=new_id)
    specimen_id = Column(
        String, ForeignKey("specimens.id", ondelete="CASCADE"), nullable=False
    )
    record_type = Column(String, nullable=False)
    agency = Column(String)
    permit_number = Column(String)
    permit_expiry = Column(Date)
    test_type = Column(String)
    test_method = Column(String)
    test_date = Column(Date)
    test_lab = Column(String)
    test_result = Column(String)
    status = Column(String, nullable=False, default="valid")
    flag_reason = Column(Text)
    chain_of_custody = Column(Text)
    notes = Column(Text)
    document_path = Column(String)
    created_by = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    specimen = relationship("Specimen")


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    unit = Column(String, nullable=False)
    current_stock = Column(Float, nullable=False, default=0)
    minimum_stock = Column(Float, nullable=False, default=0)
    reorder_point = Column(Float)
    supplier = Column(String)
    catalog_number = Column(String)
    lot_number = Column(String)
    storage_location = Column(String)
    expiration_date = Column(Date)
    cost_per_unit = Column(Float)
    notes = Column(Text)
    physical_state = Column(String, default="solid")
    concentration = Column(Float)
    concentration_unit = Column(String)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class PreparedSolution(Base):
    __tablename__ = "prepared_solutions"
    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    source_item_id = Column(String, ForeignKey("inventory_items.id"))
    source_item_name = Column(String)
    concentration = Column(Float, nullable=False)
    concentration_unit = Column(String, nullable=False)
    solvent = Column(String)
    volume_ml = Column(Float, nullable=False)
    volume_remaining_ml = Column(Float, nullable=False)
    prepared_by = Column(String)
    preparation_date = Column(Date, nullable=False)
    expiration_date = Column(Date)
    storage_conditions = Column(String)
    lot_number = Column(String)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)


class AuditLog(Base):
    __tablename__ = "audit_log"
    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"))
    action = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String)
    old_value = Column(Text)
    new_value = Column(Text)
    ip_address = Column(String)
    details = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User")


class ErrorLog(Base):
    __tablename__ = "error_logs"
    id = Column(String, primary_key=True, default=new_id)
    timestamp = Column(DateTime, nullable=False, default=utcnow)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    module = Column(String)
    severity = Column(String, nullable=False, default="error")
    user_id = Column(String)
    username = Column(String)
    form_payload = Column(Text)
    stack_trace = Column(Text)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class QrScan(Base):
    __tablename__ = "qr_scans"
    id = Column(String, primary_key=True, default=new_id)
    raw_data = Column(Text, nullable=False)
    accession_number = Column(String)
    scanned_by = Column(String, ForeignKey("users.id"))
    scanned_at = Column(DateTime, nullable=False, default=utcnow)
