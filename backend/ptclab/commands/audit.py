from __future__ import annotations

from .. import audit, schemas
from ..querybuilder import PageRequest
from ..rbac import Capability
from . import command


@command("get_audit_log", Capability.MANAGE, payload=schemas.AuditSearch)
def get_audit_log(db, user, request: schemas.AuditSearch):
    return audit.search(
        db,
        PageRequest.of(request.page, request.per_page),
        user_id=request.user_id,
        entity_type=request.entity_type,
        entity_id=request.entity_id,
        action=request.action,
        from_date=request.from_date,
        to_date=request.to_date,
    )
