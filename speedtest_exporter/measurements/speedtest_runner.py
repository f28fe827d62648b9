"""Speedtest.net directory client and stage runner backed by speedtest-cli."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

import speedtest

from ..config import SpeedtestConfig
from .errors import CancellationError, CandidateFetchError, IdentityFetchError, StageFailure
from .models import CallerIdentity, CandidateTarget, Stage
from .scope import ScrapeScope

LOGGER = logging.getLogger(__name__)

# speedtest-cli scores an unreachable server as 3600 s per failed ping,
# averaged into milliseconds.
UNREACHABLE_LATENCY_MS = 1_800_000.0

SessionFactory = Callable[..., Any]


class SpeedtestCliBackend:
    """Directory client and stage runner sharing one ``speedtest.Speedtest`` per run.

    ``fetch_caller_identity`` opens a fresh session bound to the run's scope:
    its ``shutdown_event`` stops speedtest-cli's transfer threads when the
    scrape is cancelled or runs out of time. Candidates and stages reuse that
    session, so the backend serves one run at a time.
    """

    def __init__(self, config: SpeedtestConfig, factory: Optional[SessionFactory] = None):
        self.config = config
        self._factory = factory or speedtest.Speedtest
        self._session: Any = None
        self._servers: Dict[str, Dict[str, Any]] = {}

    def fetch_caller_identity(self, scope: ScrapeScope) -> CallerIdentity:
        try:
            self._session = self._factory(
                timeout=scope.bound(self.config.timeout),
                secure=self.config.secure,
                shutdown_event=scope.shutdown_event,
            )
        except (speedtest.SpeedtestException, CancellationError) as exc:
            self._session = None
            raise IdentityFetchError(f"could not fetch user information: {exc}") from exc
        self._servers = {}

        client = self._session.config.get("client")
        if not client:
            raise IdentityFetchError("speedtest configuration did not include client information")

        identity = CallerIdentity(
            ip=str(client.get("ip", "")),
            lat=str(client.get("lat", "")),
            lon=str(client.get("lon", "")),
            isp=str(client.get("isp", "")),
        )
        LOGGER.debug("Resolved caller identity %s (%s)", identity.ip, identity.isp)
        return identity

    def fetch_candidates(self, scope: ScrapeScope) -> List[CandidateTarget]:
        if self._session is None:
            raise CandidateFetchError("caller identity must be fetched before the server list")
        try:
            scope.check()
            by_distance = self._session.get_servers()
        except (speedtest.SpeedtestException, CancellationError) as exc:
            raise CandidateFetchError(f"could not fetch server list: {exc}") from exc

        candidates = []
        for distance in sorted(by_distance):
            for server in by_distance[distance]:
                candidate = _candidate_from_server(server, distance)
                self._servers[candidate.id] = server
                candidates.append(candidate)
        LOGGER.debug("Fetched %d candidate servers", len(candidates))
        return candidates

    def measure_latency(self, scope: ScrapeScope, target: CandidateTarget) -> timedelta:
        session, server = self._prepare(scope, target, Stage.LATENCY)
        try:
            best = session.get_best_server([server])
        except speedtest.SpeedtestException as exc:
            raise StageFailure(Stage.LATENCY.value, target.id, f"latency test failed: {exc}") from exc
        scope.check(Stage.LATENCY.value, target.id)

        latency_ms = float(best["latency"])
        if latency_ms >= UNREACHABLE_LATENCY_MS:
            raise StageFailure(Stage.LATENCY.value, target.id, "server did not answer latency requests")
        return timedelta(milliseconds=latency_ms)

    def measure_download(self, scope: ScrapeScope, target: CandidateTarget) -> float:
        session, server = self._prepare(scope, target, Stage.DOWNLOAD)
        return self._transfer(
            scope, target, Stage.DOWNLOAD, session, server, lambda: session.download(threads=self.config.threads)
        )

    def measure_upload(self, scope: ScrapeScope, target: CandidateTarget) -> float:
        session, server = self._prepare(scope, target, Stage.UPLOAD)
        return self._transfer(
            scope,
            target,
            Stage.UPLOAD,
            session,
            server,
            lambda: session.upload(pre_allocate=self.config.pre_allocate, threads=self.config.threads),
        )

    def _prepare(self, scope: ScrapeScope, target: CandidateTarget, stage: Stage) -> Tuple[Any, Dict[str, Any]]:
        scope.check(stage.value, target.id)
        server = self._servers.get(target.id)
        if self._session is None or server is None:
            raise StageFailure(stage.value, target.id, "server is not part of the current server list")
        return self._session, server

    def _transfer(
        self,
        scope: ScrapeScope,
        target: CandidateTarget,
        stage: Stage,
        session: Any,
        server: Dict[str, Any],
        run: Callable[[], float],
    ) -> float:
        try:
            # download() and upload() always use the session's best server.
            current: Optional[Dict[str, Any]] = session.results.server
            if not current or str(current.get("id")) != target.id:
                session.get_best_server([server])
            bits_per_second = run()
        except speedtest.SpeedtestException as exc:
            raise StageFailure(stage.value, target.id, f"{stage.value} test failed: {exc}") from exc
        scope.check(stage.value, target.id)

        if not bits_per_second or bits_per_second <= 0:
            raise StageFailure(stage.value, target.id, f"no data transferred during {stage.value} test")
        return bits_per_second / 8.0


def _candidate_from_server(server: Dict[str, Any], distance: float) -> CandidateTarget:
    return CandidateTarget(
        id=str(server["id"]),
        name=server.get("name", ""),
        country=server.get("country", ""),
        lat=str(server.get("lat", "")),
        lon=str(server.get("lon", "")),
        distance=float(server.get("d", distance)),
        url=server.get("url", ""),
        host=server.get("host", ""),
    )
