from datetime import datetime, timedelta

import pytest

from ptclab import rbac
from ptclab.auth import (
    authenticate,
    create_session,
    hash_password,
    invalidate_session,
    validate_session,
    verify_password,
)
from ptclab.commands import dispatch
from ptclab.errors import InvalidCredentials, PermissionDenied, SessionInvalid
from ptclab.rbac import Capability, Role


def test_password_hash_round_trip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "not-a-hash")


def test_login_never_exposes_password_hash(call, state):
    result = dispatch(state, "login", username="admin", password="admin")
    dumped = result.model_dump()
    assert "password_hash" not in dumped["user"]
    assert len(result.token) >= 43

    for user in call("list_users"):
        assert "password_hash" not in user
    assert "password_hash" not in call("get_current_user")


def test_wrong_password_and_unknown_user_share_one_error(state):
    with state.session() as db:
        with pytest.raises(InvalidCredentials) as first:
            authenticate(db, "admin", "nope")
        with pytest.raises(InvalidCredentials) as second:
            authenticate(db, "ghost", "admin")
    assert first.value.message == second.value.message == "Invalid username or password"


def test_inactive_user_cannot_log_in(call, make_user, state):
    make_user("tech", username="lee")
    lee = next(u for u in call("list_users") if u["username"] == "lee")
    call("set_user_active", user_id=lee["id"], is_active=False)
    with state.session() as db:
        with pytest.raises(InvalidCredentials):
            authenticate(db, "lee", "secret")


def test_session_valid_until_expiry_instant(state):
    issued = datetime(2024, 6, 1, 8, 0, 0)
    with state.session() as db:
        admin = authenticate(db, "admin", "admin")
        token = create_session(db, admin.id, now=issued, lifetime=timedelta(hours=24))
        expiry = issued + timedelta(hours=24)

        assert validate_session(db, token, now=issued).id == admin.id
        assert validate_session(db, token, now=expiry - timedelta(seconds=1)).id == admin.id
        with pytest.raises(SessionInvalid):
            validate_session(db, token, now=expiry)
        with pytest.raises(SessionInvalid):
            validate_session(db, token, now=expiry + timedelta(minutes=5))


def test_invalidate_session_is_idempotent(state):
    with state.session() as db:
        admin = authenticate(db, "admin", "admin")
        token = create_session(db, admin.id)
        validate_session(db, token)
        invalidate_session(db, token)
        with pytest.raises(SessionInvalid):
            validate_session(db, token)
        invalidate_session(db, token)


def test_logout_ends_the_session(call, state, admin_token):
    call("logout")
    with pytest.raises(SessionInvalid):
        dispatch(state, "get_current_user", admin_token)


def test_missing_token_is_rejected(state):
    with pytest.raises(SessionInvalid):
        dispatch(state, "list_species", None)


def test_capability_table():
    assert rbac.can_write(Role.TECH)
    assert not rbac.can_write(Role.GUEST)
    assert rbac.can_manage("supervisor")
    assert not rbac.can_manage("tech")
    assert rbac.is_admin("admin")
    assert not rbac.is_admin("supervisor")
    assert rbac.role_allows("guest", Capability.READ)
    # unknown stored roles fall back to the lowest tier
    assert Role.parse("superuser") is Role.GUEST
    assert not rbac.can_write("superuser")
    with pytest.raises(PermissionDenied):
        rbac.require("tech", Capability.MANAGE)


def test_role_change_is_audited(call, make_user):
    make_user("guest", username="pat")
    pat = next(u for u in call("list_users") if u["username"] == "pat")
    updated = call("update_user_role", user_id=pat["id"], role="supervisor")
    assert updated["role"] == "supervisor"
    entries = call("get_audit_log", entity_id=pat["id"], action="update_role")["items"]
    assert entries[0]["old_value"] == "guest"
    assert entries[0]["new_value"] == "supervisor"
