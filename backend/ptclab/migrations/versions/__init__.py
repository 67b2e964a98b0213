from . import v0001_initial, v0002_specimen_stages, v0003_error_logs

MIGRATIONS = (
    v0001_initial.migration,
    v0002_specimen_stages.migration,
    v0003_error_logs.migration,
)

LATEST_VERSION = max(m.version for m in MIGRATIONS)
