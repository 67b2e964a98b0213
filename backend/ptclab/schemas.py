from datetime import date, datetime
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field

RoleName = Literal["admin", "supervisor", "tech", "guest"]
Stage = Literal[
    "explant", "callus", "suspension", "protoplast",
    "shoot", "shoot_meristem", "apical_meristem",
    "root", "root_meristem",
    "embryogenic", "plantlet", "acclimatized", "stock", "archived", "custom",
]
PropagationMethod = Literal[
    "microprop", "somatic_embryogenesis", "organogenesis",
    "meristem_culture", "anther_culture", "protoplast_fusion", "other",
]
AcclimatizationStatus = Literal[
    "not_applicable", "in_vitro", "hardening", "greenhouse", "field", "completed",
]
HormoneType = Literal["auxin", "cytokinin", "gibberellin", "other"]
InventoryCategory = Literal[
    "media_ingredient", "vessel", "hormone", "chemical", "consumable", "equipment", "other",
]
ReminderType = Literal[
    "subculture_due", "media_expiry", "disease_test", "permit_expiry",
    "quarantine_review", "custom",
]
ReminderStatus = Literal["active", "snoozed", "dismissed", "completed"]
Urgency = Literal["low", "normal", "high", "critical"]
RecordType = Literal[
    "disease_test", "permit", "phytosanitary_cert", "inspection",
    "quarantine", "movement_permit", "pest_risk", "export_cert", "other",
]
Agency = Literal["USDA_APHIS", "TX_AG", "FL_FDACS", "other"]
TestResult = Literal["positive", "negative", "inconclusive", "pending"]
ComplianceStatus = Literal["valid", "expired", "pending", "flagged", "revoked"]


class PageParams(BaseModel):
    page: Optional[int] = None
    per_page: Optional[int] = None


# users and sessions

class UserOut(BaseModel):
    id: str
    username: str
    display_name: str
    email: Optional[str] = None
    role: str
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    display_name: str
    email: Optional[str] = None
    role: RoleName = "tech"


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str
    user: UserOut


# species and tags

class SpeciesCreate(BaseModel):
    genus: str
    species_name: str
    common_name: Optional[str] = None
    species_code: str = Field(min_length=1)
    default_subculture_interval_days: Optional[int] = None
    notes: Optional[str] = None


class SpeciesUpdate(BaseModel):
    id: str
    genus: Optional[str] = None
    species_name: Optional[str] = None
    common_name: Optional[str] = None
    species_code: Optional[str] = None
    default_subculture_interval_days: Optional[int] = None
    notes: Optional[str] = None


class SpeciesOut(BaseModel):
    id: str
    genus: str
    species_name: str
    common_name: Optional[str] = None
    species_code: str
    default_subculture_interval_days: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TagOut(BaseModel):
    id: str
    name: str
    category: str
    parent_tag_id: Optional[str] = None
    color: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


# specimens

class SpecimenCreate(BaseModel):
    species_id: str
    project_id: Optional[str] = None
    stage: Stage = "explant"
    custom_stage: Optional[str] = None
    provenance: Optional[str] = None
    source_plant: Optional[str] = None
    initiation_date: date
    location: Optional[str] = None
    location_details: Optional[str] = None
    propagation_method: Optional[PropagationMethod] = None
    acclimatization_status: Optional[AcclimatizationStatus] = None
    health_status: Optional[str] = None
    disease_status: Optional[str] = None
    quarantine_flag: bool = False
    permit_number: Optional[str] = None
    permit_expiry: Optional[date] = None
    ip_flag: bool = False
    ip_notes: Optional[str] = None
    environmental_notes: Optional[str] = None
    parent_specimen_id: Optional[str] = None
    notes: Optional[str] = None
    employee_id: Optional[str] = None


class SpecimenUpdate(BaseModel):
    id: str
    stage: Optional[Stage] = None
    custom_stage: Optional[str] = None
    location: Optional[str] = None
    location_details: Optional[str] = None
    propagation_method: Optional[PropagationMethod] = None
    acclimatization_status: Optional[AcclimatizationStatus] = None
    health_status: Optional[str] = None
    disease_status: Optional[str] = None
    quarantine_flag: Optional[bool] = None
    quarantine_release_date: Optional[date] = None
    permit_number: Optional[str] = None
    permit_expiry: Optional[date] = None
    ip_flag: Optional[bool] = None
    ip_notes: Optional[str] = None
    environmental_notes: Optional[str] = None
    notes: Optional[str] = None
    employee_id: Optional[str] = None


class SpecimenSearch(PageParams):
    query: Optional[str] = None
    species_id: Optional[str] = None
    stage: Optional[str] = None
    project_id: Optional[str] = None
    quarantine_only: bool = False
    archived: bool = False


class SpecimenOut(BaseModel):
    id: str
    accession_number: str
    species_id: str
    species_code: Optional[str] = None
    species_name: Optional[str] = None
    project_id: Optional[str] = None
    project_name: Optional[str] = None
    stage: str
    custom_stage: Optional[str] = None
    provenance: Optional[str] = None
    source_plant: Optional[str] = None
    initiation_date: date
    location: Optional[str] = None
    location_details: Optional[str] = None
    propagation_method: Optional[str] = None
    acclimatization_status: Optional[str] = None
    health_status: Optional[str] = None
    disease_status: Optional[str] = None
    quarantine_flag: bool
    quarantine_release_date: Optional[date] = None
    permit_number: Optional[str] = None
    permit_expiry: Optional[date] = None
    ip_flag: bool
    ip_notes: Optional[str] = None
    environmental_notes: Optional[str] = None
    subculture_count: int
    parent_specimen_id: Optional[str] = None
    qr_code_data: Optional[str] = None
    notes: Optional[str] = None
    is_archived: bool
    archived_at: Optional[datetime] = None
    employee_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class StageCount(BaseModel):
    stage: str
    count: int


class SpeciesCount(BaseModel):
    species_code: str
    count: int


class SpecimenStats(BaseModel):
    total_specimens: int
    active_specimens: int
    quarantined: int
    archived: int
    by_stage: List[StageCount]
    by_species: List[SpeciesCount]
    recent_subcultures: int


# subcultures

class SubcultureCreate(BaseModel):
    specimen_id: str
    date: date
    media_batch_id: Optional[str] = None
    ph: Optional[float] = None
    temperature_c: Optional[float] = None
    light_cycle: Optional[str] = None
    light_intensity_lux: Optional[float] = None
    experimental_treatment: Optional[str] = None
    vessel_type: Optional[str] = None
    vessel_size: Optional[str] = None
    vessel_material: Optional[str] = None
    vessel_lid_type: Optional[str] = None
    location_from: Optional[str] = None
    location_to: Optional[str] = None
    temp_before: Optional[float] = None
    temp_after: Optional[float] = None
    humidity_before: Optional[float] = None
    humidity_after: Optional[float] = None
    light_before: Optional[str] = None
    light_after: Optional[str] = None
    exposure_duration_hours: Optional[float] = None
    notes: Optional[str] = None
    observations: Optional[str] = None
    employee_id: Optional[str] = None
    health_status: Optional[str] = None


class SubcultureUpdate(BaseModel):
    id: str
    notes: Optional[str] = None
    observations: Optional[str] = None
    vessel_type: Optional[str] = None
    location_to: Optional[str] = None
    health_status: Optional[str] = None


class SubcultureOut(BaseModel):
    id: str
    specimen_id: str
    passage_number: int
    date: date
    media_batch_id: Optional[str] = None
    media_batch_name: Optional[str] = None
    ph: Optional[float] = None
    temperature_c: Optional[float] = None
    light_cycle: Optional[str] = None
    light_intensity_lux: Optional[float] = None
    experimental_treatment: Optional[str] = None
    vessel_type: Optional[str] = None
    vessel_size: Optional[str] = None
    vessel_material: Optional[str] = None
    vessel_lid_type: Optional[str] = None
    location_from: Optional[str] = None
    location_to: Optional[str] = None
    temp_before: Optional[float] = None
    temp_after: Optional[float] = None
    humidity_before: Optional[float] = None
    humidity_after: Optional[float] = None
    light_before: Optional[str] = None
    light_after: Optional[str] = None
    exposure_duration_hours: Optional[float] = None
    notes: Optional[str] = None
    observations: Optional[str] = None
    performed_by: Optional[str] = None
    performer_name: Optional[str] = None
    employee_id: Optional[str] = None
    health_status: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# media

class MediaHormoneCreate(BaseModel):
    hormone_name: str
    hormone_type: Optional[HormoneType] = None
    concentration_mg_per_l: float
    supplier: Optional[str] = None
    lot_number: Optional[str] = None
    reagent_batch_id: Optional[str] = None
    amount_used: Optional[float] = None
    amount_unit: Optional[str] = None


class MediaHormoneOut(MediaHormoneCreate):
    id: str
    model_config = ConfigDict(from_attributes=True)


class MediaBatchCreate(BaseModel):
    name: str
    preparation_date: date
    expiration_date: Optional[date] = None
    basal_salts: Optional[str] = None
    basal_salts_concentration: Optional[float] = None
    vitamins: Optional[str] = None
    sucrose_g_per_l: Optional[float] = None
    agar_g_per_l: Optional[float] = None
    gelling_agent: Optional[str] = None
    ph_before_autoclave: Optional[float] = None
    ph_after_autoclave: Optional[float] = None
    sterilization_method: Optional[str] = None
    volume_prepared_ml: Optional[float] = None
    storage_conditions: Optional[str] = None
    qc_notes: Optional[str] = None
    supplier_info: Optional[str] = None
    cost_per_batch: Optional[float] = None
    osmolarity: Optional[float] = None
    conductivity: Optional[float] = None
    is_custom: bool = False
    notes: Optional[str] = None
    employee_id: Optional[str] = None
    hormones: List[MediaHormoneCreate] = []


class MediaBatchUpdate(BaseModel):
    id: str
    name: Optional[str] = None
    expiration_date: Optional[date] = None
    volume_used_ml: Optional[float] = None
    volume_remaining_ml: Optional[float] = None
    storage_conditions: Optional[str] = None
    qc_notes: Optional[str] = None
    needs_review: Optional[bool] = None
    notes: Optional[str] = None


class MediaBatchOut(BaseModel):
    id: str
    batch_id: str
    name: str
    preparation_date: date
    expiration_date: Optional[date] = None
    basal_salts: Optional[str] = None
    basal_salts_concentration: Optional[float] = None
    vitamins: Optional[str] = None
    sucrose_g_per_l: Optional[float] = None
    agar_g_per_l: Optional[float] = None
    gelling_agent: Optional[str] = None
    ph_before_autoclave: Optional[float] = None
    ph_after_autoclave: Optional[float] = None
    sterilization_method: Optional[str] = None
    volume_prepared_ml: Optional[float] = None
    volume_used_ml: Optional[float] = None
    volume_remaining_ml: Optional[float] = None
    storage_conditions: Optional[str] = None
    qc_notes: Optional[str] = None
    supplier_info: Optional[str] = None
    cost_per_batch: Optional[float] = None
    osmolarity: Optional[float] = None
    conductivity: Optional[float] = None
    is_custom: bool
    needs_review: bool
    notes: Optional[str] = None
    employee_id: Optional[str] = None
    hormones: List[MediaHormoneOut] = []
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# inventory and prepared solutions

class InventoryItemCreate(BaseModel):
    name: str
    category: InventoryCategory
    unit: str
    current_stock: float = Field(default=0, ge=0)
    minimum_stock: float = Field(default=0, ge=0)
    reorder_point: Optional[float] = None
    supplier: Optional[str] = None
    catalog_number: Optional[str] = None
    lot_number: Optional[str] = None
    storage_location: Optional[str] = None
    expiration_date: Optional[date] = None
    cost_per_unit: Optional[float] = None
    notes: Optional[str] = None
    physical_state: Optional[str] = None
    concentration: Optional[float] = None
    concentration_unit: Optional[str] = None


class InventoryItemUpdate(BaseModel):
    id: str
    name: Optional[str] = None
    category: Optional[InventoryCategory] = None
    unit: Optional[str] = None
    current_stock: Optional[float] = Field(default=None, ge=0)
    minimum_stock: Optional[float] = Field(default=None, ge=0)
    reorder_point: Optional[float] = None
    supplier: Optional[str] = None
    catalog_number: Optional[str] = None
    lot_number: Optional[str] = None
    storage_location: Optional[str] = None
    expiration_date: Optional[date] = None
    cost_per_unit: Optional[float] = None
    notes: Optional[str] = None
    physical_state: Optional[str] = None
    concentration: Optional[float] = None
    concentration_unit: Optional[str] = None


class InventoryItemOut(BaseModel):
    id: str
    name: str
    category: str
    unit: str
    current_stock: float
    minimum_stock: float
    reorder_point: Optional[float] = None
    supplier: Optional[str] = None
    catalog_number: Optional[str] = None
    lot_number: Optional[str] = None
    storage_location: Optional[str] = None
    expiration_date: Optional[date] = None
    cost_per_unit: Optional[float] = None
    notes: Optional[str] = None
    physical_state: Optional[str] = None
    concentration: Optional[float] = None
    concentration_unit: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class StockAdjustment(BaseModel):
    id: str
    adjustment: float
    reason: Optional[str] = None


class LowStockAlert(BaseModel):
    id: str
    name: str
    category: str
    current_stock: float
    minimum_stock: float
    reorder_point: Optional[float] = None
    unit: str
    model_config = ConfigDict(from_attributes=True)


class PreparedSolutionCreate(BaseModel):
    name: str
    source_item_id: Optional[str] = None
    source_amount_used: Optional[float] = Field(default=None, ge=0)
    concentration: float
    concentration_unit: str
    solvent: Optional[str] = None
    volume_ml: float = Field(gt=0)
    prepared_by: Optional[str] = None
    preparation_date: date
    expiration_date: Optional[date] = None
    storage_conditions: Optional[str] = None
    lot_number: Optional[str] = None
    notes: Optional[str] = None


class PreparedSolutionUpdate(BaseModel):
    id: str
    name: Optional[str] = None
    volume_remaining_ml: Optional[float] = Field(default=None, ge=0)
    expiration_date: Optional[date] = None
    storage_conditions: Optional[str] = None
    lot_number: Optional[str] = None
    notes: Optional[str] = None


class PreparedSolutionOut(BaseModel):
    id: str
    name: str
    source_item_id: Optional[str] = None
    source_item_name: Optional[str] = None
    concentration: float
    concentration_unit: str
    solvent: Optional[str] = None
    volume_ml: float
    volume_remaining_ml: float
    prepared_by: Optional[str] = None
    preparation_date: date
    expiration_date: Optional[date] = None
    storage_conditions: Optional[str] = None
    lot_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# compliance

class ComplianceCreate(BaseModel):
    specimen_id: str
    record_type: RecordType
    agency: Optional[Agency] = None
    permit_number: Optional[str] = None
    permit_expiry: Optional[date] = None
    test_type: Optional[str] = None
    test_method: Optional[str] = None
    test_date: Optional[date] = None
    test_lab: Optional[str] = None
    test_result: Optional[TestResult] = None
    status: ComplianceStatus = "valid"
    chain_of_custody: Optional[str] = None
    notes: Optional[str] = None


class ComplianceUpdate(BaseModel):
    id: str
    test_result: Optional[TestResult] = None
    status: Optional[ComplianceStatus] = None
    flag_reason: Optional[str] = None
    notes: Optional[str] = None


class ComplianceOut(BaseModel):
    id: str
    specimen_id: str
    specimen_accession: Optional[str] = None
    record_type: str
    agency: Optional[str] = None
    permit_number: Optional[str] = None
    permit_expiry: Optional[date] = None
    test_type: Optional[str] = None
    test_method: Optional[str] = None
    test_date: Optional[date] = None
    test_lab: Optional[str] = None
    test_result: Optional[str] = None
    status: str
    flag_reason: Optional[str] = None
    chain_of_custody: Optional[str] = None
    notes: Optional[str] = None
    document_path: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ComplianceFlag(BaseModel):
    specimen_id: str
    accession_number: str
    species_code: str
    flag_type: str
    message: str
    severity: str


# reminders

class ReminderCreate(BaseModel):
    specimen_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    reminder_type: ReminderType
    due_date: date
    is_recurring: bool = False
    recurrence_days: Optional[int] = None
    recurrence_rule: Optional[str] = None
    urgency: Urgency = "normal"
    assigned_to: Optional[str] = None


class ReminderUpdate(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    urgency: Optional[Urgency] = None
    status: Optional[ReminderStatus] = None
    assigned_to: Optional[str] = None


class ReminderOut(BaseModel):
    id: str
    specimen_id: Optional[str] = None
    specimen_accession: Optional[str] = None
    title: str
    description: Optional[str] = None
    reminder_type: str
    due_date: date
    is_recurring: bool
    recurrence_days: Optional[int] = None
    recurrence_rule: Optional[str] = None
    status: str
    snooze_count: int
    urgency: str
    assigned_to: Optional[str] = None
    assigned_name: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# audit, error logs, scans, backups

class AuditSearch(PageParams):
    user_id: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    action: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None


class AuditEntryOut(BaseModel):
    id: str
    user_id: Optional[str] = None
    username: Optional[str] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    details: Optional[str] = None
    created_at: datetime


class ErrorLogCreate(BaseModel):
    title: str
    message: str
    module: Optional[str] = None
    severity: Optional[str] = None
    form_payload: Optional[str] = None
    stack_trace: Optional[str] = None


class ErrorLogSearch(PageParams):
    severity: Optional[str] = None
    module: Optional[str] = None
    unread_only: bool = False


class ErrorLogOut(BaseModel):
    id: str
    timestamp: datetime
    title: str
    message: str
    module: Optional[str] = None
    severity: str
    user_id: Optional[str] = None
    username: Optional[str] = None
    form_payload: Optional[str] = None
    stack_trace: Optional[str] = None
    is_read: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class QrScanOut(BaseModel):
    id: str
    raw_data: str
    accession_number: Optional[str] = None
    scanned_by: Optional[str] = None
    scanned_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BackupInfo(BaseModel):
    file_name: str
    path: str
    size_bytes: int
    created_at: datetime
