import asyncio
from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest
from typer.testing import CliRunner

from issuerelay.domain.interfaces.clock import Clock
from issuerelay.domain.interfaces.transport import TransportClient
from issuerelay.domain.models.submission import (
    BatchPayload, IssueRecord, PayloadMetadata, SourceRef, TransportResponse,
)
from issuerelay.infrastructure.config import settings


class FakeClock(Clock):
    """Deterministic clock: sleeping advances time instantly and is recorded."""

    def __init__(self, start: float = 1000.0):
        self._now = start
        self.sleeps: List[float] = []
        self.on_sleep: Optional[Callable[[float], None]] = None

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    async def sleep(self, seconds: float, cancel_event: Optional[asyncio.Event] = None) -> None:
        self.sleeps.append(seconds)
        if self.on_sleep:
            self.on_sleep(seconds)
        if cancel_event is not None and cancel_event.is_set():
            return
        self._now += max(seconds, 0.0)


Step = Union[TransportResponse, Exception]


class ScriptedTransport(TransportClient):
    """Returns (or raises) scripted results in order; the last one repeats."""

    def __init__(self, *steps: Step, reachable: bool = True):
        self.steps: List[Step] = list(steps) or [TransportResponse(success=True)]
        self.sent: List[BatchPayload] = []
        self.reachable = reachable
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.sent)

    async def send(self, payload: BatchPayload) -> TransportResponse:
        self.sent.append(payload)
        step = self.steps[min(len(self.sent), len(self.steps)) - 1]
        if isinstance(step, BaseException):
            raise step
        return step

    async def test_connection(self) -> bool:
        return self.reachable

    async def aclose(self) -> None:
        self.closed = True


def make_issue(index: int = 1, **overrides) -> IssueRecord:
    fields = dict(
        title=f"Fix login redirect #{index}",
        description="Users were sent to the wrong page after signing in.",
        created_at="2024-03-01T10:00:00Z",
        updated_at="2024-03-02T08:30:00Z",
        source_ref=SourceRef(type="commit", id=f"a1b2c3d4e5f6{index:04d}", repository="/srv/repos/webapp"),
        labels=["bug"],
    )
    fields.update(overrides)
    return IssueRecord(**fields)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def issue_factory():
    """Builds valid IssueRecords; keyword arguments replace single fields."""
    return make_issue


@pytest.fixture
def scripted_transport():
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def payload() -> BatchPayload:
    return BatchPayload(
        issues=[make_issue(1), make_issue(2)],
        project_id="proj-42",
        metadata=PayloadMetadata(tool_version="1.0.0", import_timestamp="2024-03-05T12:00:00Z"),
    )


@pytest.fixture
def batch_file(tmp_path: Path, payload: BatchPayload) -> Path:
    import json
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(payload.to_dict()), encoding="utf-8")
    return path


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch, tmp_path):
    """Keeps user config files and ISSUERELAY_* variables out of every test."""
    import os
    for name in list(os.environ):
        if name.startswith(settings.ENV_PREFIX) or name == "LINEAR_API_KEY":
            monkeypatch.delenv(name)
    monkeypatch.setattr(settings, "DEFAULT_CONFIG_FILE", tmp_path / "missing-config.yaml")
    monkeypatch.setattr(settings, "find_dotenv_path", lambda: None)
    settings.reset_configuration()
    settings.clear_test_config()
    yield
    settings.reset_configuration()
    settings.clear_test_config()
