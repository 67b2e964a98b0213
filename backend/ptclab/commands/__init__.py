from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, get_type_hints

from pydantic import BaseModel, TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..auth import validate_session
from ..errors import (
    ConstraintViolation,
    InvalidRequest,
    NotFound,
    PTCLabError,
    SessionInvalid,
    StorageFailure,
)
from ..rbac import Capability, require

# purpose: named request handlers behind one session/capability guard
# status: active

logger = logging.getLogger(__name__)

PUBLIC_COMMANDS = {"login", "log_error"}
_MUTATING_PREFIXES = ("create_", "update_", "delete_", "adjust_", "reset_", "clear_")


@dataclass(frozen=True)
class Command:
    name: str
    handler: Callable[..., Any]
    capability: Optional[Capability]
    public: bool = False
    soft_auth: bool = False
    payload: Optional[Type[BaseModel]] = None
    with_state: bool = False
    with_token: bool = False


_REGISTRY: dict[str, Command] = {}


def command(
    name: str,
    capability: Capability | None = None,
    *,
    public: bool = False,
    soft_auth: bool = False,
    payload: Type[BaseModel] | None = None,
    with_state: bool = False,
    with_token: bool = False,
):
    """Register ``fn(db, user, ...)`` as the handler for ``name``.

    Non-public handlers only run for a valid session whose role holds
    ``capability`` (any valid session when it is None). A ``payload`` model
    validates the keyword arguments and is passed as ``request``.
    """

    def decorator(fn):
        if name in _REGISTRY:
            raise ValueError(f"Command {name} registered twice")
        _REGISTRY[name] = Command(
            name=name,
            handler=fn,
            capability=capability,
            public=public,
            soft_auth=soft_auth,
            payload=payload,
            with_state=with_state,
            with_token=with_token,
        )
        return fn

    return decorator


def registry() -> dict[str, Command]:
    return dict(_REGISTRY)


def fetch(db, model, row_id: str, label: str):
    row = db.get(model, row_id)
    if row is None:
        raise NotFound(f"{label} not found")
    return row


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        where = ".".join(str(part) for part in error["loc"]) or "request"
        problems.append(f"{where}: {error['msg']}")
    return "Invalid request: " + "; ".join(problems)


def _constraint_message(exc: IntegrityError) -> str:
    text = str(exc.orig) if exc.orig is not None else str(exc)
    if "UNIQUE" in text:
        return f"Duplicate value: {text}"
    return f"Constraint violation: {text}"


def _coerce(cmd: Command, kwargs: dict) -> dict:
    """Validate plain keyword arguments against the handler's annotations."""
    hints = get_type_hints(cmd.handler)
    args = {}
    for name, value in kwargs.items():
        hint = hints.get(name)
        if hint is None:
            args[name] = value
            continue
        try:
            args[name] = TypeAdapter(hint).validate_python(value)
        except ValidationError as exc:
            raise InvalidRequest(f"Invalid request: {name}: {exc.errors()[0]['msg']}") from exc
    return args


def _arguments(cmd: Command, state, token, kwargs: dict) -> dict:
    if cmd.payload is not None:
        try:
            args = {"request": cmd.payload.model_validate(kwargs)}
        except ValidationError as exc:
            raise InvalidRequest(_describe(exc)) from exc
    else:
        args = _coerce(cmd, kwargs)
    if cmd.with_state:
        args["state"] = state
    if cmd.with_token:
        args["token"] = token
    try:
        inspect.signature(cmd.handler).bind(None, None, **args)
    except TypeError as exc:
        raise InvalidRequest(f"Invalid arguments for {cmd.name}: {exc}") from exc
    return args


def dispatch(state, command_name: str, token: str | None = None, /, **kwargs):
    """Run one command under the state lock and return its raw result."""
    cmd = _REGISTRY.get(command_name)
    if cmd is None:
        raise InvalidRequest(f"Unknown command: {command_name}")
    with state.session() as db:
        try:
            user = None
            if not cmd.public:
                user = validate_session(db, token)
                if cmd.capability is not None:
                    require(user.role, cmd.capability)
            elif cmd.soft_auth and token:
                try:
                    user = validate_session(db, token)
                except SessionInvalid:
                    user = None
            args = _arguments(cmd, state, token, kwargs)
            return cmd.handler(db, user, **args)
        except IntegrityError as exc:
            db.rollback()
            raise ConstraintViolation(_constraint_message(exc)) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageFailure(f"Storage failure: {exc}") from exc


_json = TypeAdapter(Any)


def invoke(state, command_name: str, token: str | None = None, /, **kwargs) -> dict:
    """Front-end bridge: a JSON-ready envelope instead of an exception."""
    try:
        data = dispatch(state, command_name, token, **kwargs)
    except PTCLabError as exc:
        return {"ok": False, "error": exc.message, "kind": exc.kind}
    except Exception as exc:
        logger.exception("Command %s failed", command_name)
        return {"ok": False, "error": str(exc), "kind": "internal_error"}
    return {"ok": True, "data": _json.dump_python(data, mode="json")}


def audit_commands() -> None:
    for cmd in _REGISTRY.values():
        if cmd.public and cmd.name not in PUBLIC_COMMANDS:
            raise RuntimeError(f"Command {cmd.name} is public but not allow-listed")
        if cmd.name.startswith(_MUTATING_PREFIXES) and cmd.capability in (None, Capability.READ):
            raise RuntimeError(f"Command {cmd.name} mutates data without a write capability")


from . import (  # noqa: E402,F401
    admin,
    audit,
    auth,
    backup,
    compliance,
    error_logs,
    export,
    inventory,
    media,
    qr_scans,
    reminders,
    solutions,
    species,
    specimens,
    subcultures,
)

audit_commands()
