import pytest

from ptclab.commands import dispatch, invoke
from ptclab.config import Settings
from ptclab.state import bootstrap


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        db_name="test.db",
        busy_timeout_ms=2000,
        session_hours=24,
        log_level="DEBUG",
        allow_memory_fallback=False,
    )


@pytest.fixture
def state(settings):
    app_state = bootstrap(settings)
    yield app_state
    app_state.close()


@pytest.fixture
def admin_token(state):
    return dispatch(state, "login", username="admin", password="admin").token


@pytest.fixture
def call(state, admin_token):
    """Invoke a command through the JSON bridge and return its data.

    Fails the test when the envelope reports an error.
    """

    def _call(name, /, token=admin_token, **kwargs):
        result = invoke(state, name, token, **kwargs)
        assert result["ok"], result
        return result["data"]

    return _call


@pytest.fixture
def make_user(call, state):
    """Create a user with ``role`` and return a session token for it."""
    counter = {"n": 0}

    def _make(role, username=None, password="secret"):
        counter["n"] += 1
        username = username or f"{role}{counter['n']}"
        call(
            "create_user",
            username=username,
            password=password,
            display_name=username.title(),
            role=role,
        )
        return dispatch(state, "login", username=username, password=password).token

    return _make


@pytest.fixture
def species_ids(call):
    return {row["species_code"]: row["id"] for row in call("list_species")}


@pytest.fixture
def new_specimen(call, species_ids):
    def _create(code="ASP-OFF", initiation_date="2024-03-01", **fields):
        return call(
            "create_specimen",
            species_id=species_ids[code],
            initiation_date=initiation_date,
            **fields,
        )

    return _create
