import pytest

from core.backend import BackendError
from core.config import Settings
from core.connection import ConnectionManager
from core.context import EngineContext
from core.models import HealthReport, SessionConfig, StartSessionResponse
from core.prefs import PreferenceStore
from core.session import SessionController


class FakeSocket:
    """Stands in for socketio.Client; handlers are fired by hand."""
    def __init__(self):
        self.handlers = {}
        self.emitted = []
        self.connected = False
        self.connect_calls = 0
        self.fail = None

    def on(self, event, handler=None):
        self.handlers[event] = handler

    def emit(self, event, data=None, **kwargs):
        self.emitted.append((event, data))

    def connect(self, url, **kwargs):
        self.connect_calls += 1
        if self.fail is not None:
            raise self.fail
        self.connected = True
        self.handlers["connect"]()

    def disconnect(self):
        self.connected = False
        self.handlers["disconnect"]()

    def fire(self, event, *args):
        self.handlers[event](*args)

    def joins(self):
        return [data for event, data in self.emitted if event == "join_session"]


class FakeBackend:
    def __init__(self):
        self.start_calls = []
        self.stop_calls = []
        self.start_result = StartSessionResponse(success=True, session_id="3f2b8c1e-0d4a-4e7b-9c11-5a6d7e8f9a0b")
        self.stop_result = {"message": "Session stopped"}
        self.start_error = None
        self.stop_error = None
        self.on_start = None
        self.on_stop = None
        self.health = HealthReport(status="healthy", data={"status": "ok"})
        self.closed = False

    def start_session(self, config):
        self.start_calls.append(config)
        if self.on_start is not None:
            self.on_start()
        if self.start_error is not None:
            raise self.start_error
        return self.start_result

    def stop_session(self, session_id):
        self.stop_calls.append(session_id)
        if self.on_stop is not None:
            self.on_stop()
        if self.stop_error is not None:
            raise self.stop_error
        return self.stop_result

    def check_health(self):
        return self.health

    def close(self):
        self.closed = True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        PREFS_PATH=str(tmp_path / "prefs.json"),
        RECONNECT_ATTEMPTS=3,
        RECONNECT_DELAY=0.01,
    )

@pytest.fixture
def fake_socket():
    return FakeSocket()

@pytest.fixture
def backend():
    return FakeBackend()

@pytest.fixture
def ctx(settings, fake_socket, backend):
    return EngineContext(
        settings=settings,
        backend=backend,
        connection=ConnectionManager(settings, client=fake_socket),
        prefs=PreferenceStore(settings.PREFS_PATH),
    )

@pytest.fixture
def controller(ctx):
    ctl = SessionController(ctx)
    ctx.connection.bind(ctl.dispatch, ctl.active_session_id)
    return ctl

@pytest.fixture
def session_config():
    return SessionConfig(
        user_name="Dana",
        meeting_url="https://zoom.us/j/123456789",
        meeting_objective="Close the renewal",
        selected_emotions=["Confusion", "Doubt"],
    )

@pytest.fixture
def backend_down():
    return BackendError("Connection refused")
