"""
Pytest configuration and shared fixtures for speedtest exporter tests.

Provides:
- Fake directory client and stage runner standing in for speedtest.net
- Sample caller identity and candidate servers
- Configuration built without touching the filesystem outside tmp_path
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from speedtest_exporter.config import (
    AppConfig,
    LoggingConfig,
    PathsConfig,
    SpeedtestConfig,
    WebConfig,
)
from speedtest_exporter.measurements.errors import StageFailure
from speedtest_exporter.measurements.models import (
    CallerIdentity,
    CandidateTarget,
    SelectionRequest,
    Stage,
)
from speedtest_exporter.measurements.orchestrator import ScrapeOrchestrator
from speedtest_exporter.measurements.scope import ScrapeScope


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Fakes
# ============================================================================


def make_target(server_id: str, distance: float = 123.456, name: str = "TestServer") -> CandidateTarget:
    return CandidateTarget(
        id=server_id,
        name=name,
        country="US",
        lat="34.0522",
        lon="-118.2437",
        distance=distance,
        url=f"http://speedtest{server_id}.example.net:8080/speedtest/upload.php",
        host=f"speedtest{server_id}.example.net:8080",
    )


class FakeDirectoryClient:
    """In-memory directory honouring the cancellation scope like the real client."""

    def __init__(
        self,
        identity: Optional[CallerIdentity] = None,
        candidates: Sequence[CandidateTarget] = (),
        identity_error: Optional[Exception] = None,
        candidates_error: Optional[Exception] = None,
    ) -> None:
        self.identity = identity
        self.candidates = list(candidates)
        self.identity_error = identity_error
        self.candidates_error = candidates_error
        self.calls: List[str] = []

    def fetch_caller_identity(self, scope: ScrapeScope) -> CallerIdentity:
        self.calls.append("identity")
        scope.check()
        if self.identity_error is not None:
            raise self.identity_error
        return self.identity

    def fetch_candidates(self, scope: ScrapeScope) -> List[CandidateTarget]:
        self.calls.append("candidates")
        scope.check()
        if self.candidates_error is not None:
            raise self.candidates_error
        return list(self.candidates)


class FakeStageRunner:
    """Returns fixed results; ``failures`` maps (server id, stage) to the error to raise."""

    def __init__(
        self,
        latency: timedelta = timedelta(milliseconds=10),
        download: float = 100000000.0,
        upload: float = 50000000.0,
        failures: Optional[Dict[Tuple[str, Stage], Exception]] = None,
    ) -> None:
        self.latency = latency
        self.download = download
        self.upload = upload
        self.failures = failures or {}
        self.calls: List[Tuple[str, Stage]] = []

    def _enter(self, scope: ScrapeScope, target: CandidateTarget, stage: Stage) -> None:
        self.calls.append((target.id, stage))
        scope.check(stage.value, target.id)
        error = self.failures.get((target.id, stage))
        if error is not None:
            raise error

    def measure_latency(self, scope: ScrapeScope, target: CandidateTarget) -> timedelta:
        self._enter(scope, target, Stage.LATENCY)
        return self.latency

    def measure_download(self, scope: ScrapeScope, target: CandidateTarget) -> float:
        self._enter(scope, target, Stage.DOWNLOAD)
        return self.download

    def measure_upload(self, scope: ScrapeScope, target: CandidateTarget) -> float:
        self._enter(scope, target, Stage.UPLOAD)
        return self.upload


def stage_error(server_id: str, stage: Stage, message: str = "boom") -> StageFailure:
    return StageFailure(stage.value, server_id, message)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def identity() -> CallerIdentity:
    return CallerIdentity(ip="1.2.3.4", lat="40.7128", lon="-74.0060", isp="TestISP")


@pytest.fixture
def single_server_client(identity: CallerIdentity) -> FakeDirectoryClient:
    return FakeDirectoryClient(identity=identity, candidates=[make_target("100")])


@pytest.fixture
def runner() -> FakeStageRunner:
    return FakeStageRunner()


@pytest.fixture
def make_orchestrator():
    """Build an orchestrator over the given fakes and selection parameters."""

    def _build(client, runner, server_ids=(-1,), fallback=False) -> ScrapeOrchestrator:
        return ScrapeOrchestrator(
            client=client,
            runner=runner,
            request=SelectionRequest(server_ids=tuple(server_ids), fallback=fallback),
        )

    return _build


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        root_dir=tmp_path,
        paths=PathsConfig(logs_dir=tmp_path / "logs"),
        web=WebConfig(),
        speedtest=SpeedtestConfig(),
        logging=LoggingConfig(log_to_file=False),
    )
