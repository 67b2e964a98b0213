from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select

from .. import audit, models, schemas
from ..auth import authenticate, create_session, hash_password, invalidate_session
from ..database import utcnow
from ..errors import ConstraintViolation, InvalidRequest
from ..rbac import Capability, Role
from . import command, fetch

# purpose: login sessions and user administration
# status: active


@command("login", public=True, payload=schemas.LoginRequest, with_state=True)
def login(db, user, request: schemas.LoginRequest, state):
    principal = authenticate(db, request.username, request.password)
    token = create_session(
        db, principal.id, lifetime=timedelta(hours=state.settings.session_hours)
    )
    audit.record(db, principal.id, "login", "user", principal.id)
    return schemas.LoginResponse(token=token, user=schemas.UserOut.model_validate(principal))


@command("logout", with_token=True)
def logout(db, user, token: str):
    invalidate_session(db, token)
    audit.record(db, user.id, "logout", "user", user.id)
    return None


@command("get_current_user")
def get_current_user(db, user):
    return schemas.UserOut.model_validate(user)


@command("list_users", Capability.MANAGE)
def list_users(db, user):
    rows = db.execute(select(models.User).order_by(models.User.username)).scalars()
    return [schemas.UserOut.model_validate(row) for row in rows]


@command("create_user", Capability.ADMIN, payload=schemas.UserCreate)
def create_user(db, user, request: schemas.UserCreate):
    exists = db.execute(
        select(models.User.id).where(models.User.username == request.username)
    ).first()
    if exists:
        raise ConstraintViolation(f"Username {request.username} already exists")
    new_user = models.User(
        username=request.username,
        password_hash=hash_password(request.password),
        display_name=request.display_name,
        email=request.email,
        role=request.role,
    )
    db.add(new_user)
    db.commit()
    audit.record(
        db, user.id, "create", "user", new_user.id,
        new_value=request.username, details="User created",
    )
    return schemas.UserOut.model_validate(new_user)


@command("update_user_role", Capability.ADMIN)
def update_user_role(db, user, user_id: str, role: str):
    try:
        new_role = Role(role)
    except ValueError:
        raise InvalidRequest(f"Unknown role: {role}") from None
    target = fetch(db, models.User, user_id, "User")
    old_role = target.role
    target.role = new_role.value
    target.updated_at = utcnow()
    db.commit()
    audit.record(
        db, user.id, "update_role", "user", user_id,
        old_value=old_role, new_value=new_role.value,
        details=f"Role changed from {old_role} to {new_role.value}",
    )
    return schemas.UserOut.model_validate(target)


@command("set_user_active", Capability.ADMIN)
def set_user_active(db, user, user_id: str, is_active: bool):
    target = fetch(db, models.User, user_id, "User")
    if target.id == user.id and not is_active:
        raise InvalidRequest("You cannot deactivate your own account")
    target.is_active = bool(is_active)
    target.updated_at = utcnow()
    db.commit()
    audit.record(
        db, user.id, "activate" if is_active else "deactivate", "user", user_id,
        details=f"User {target.username} {'activated' if is_active else 'deactivated'}",
    )
    return schemas.UserOut.model_validate(target)
