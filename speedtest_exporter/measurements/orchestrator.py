"""Scrape orchestration: identity, server selection and per-server stage runs."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Callable, List, Optional, Sequence

from .errors import CandidateFetchError, IdentityFetchError, RunAbortedError
from .labels import SCRAPE_DURATION, STAGE_METRICS, UP, label_values
from .models import (
    STAGE_ORDER,
    CallerIdentity,
    CandidateTarget,
    MeasuredTarget,
    Observation,
    RunOutcome,
    SelectionRequest,
    Stage,
)
from .ports import DirectoryClient, StageRunner
from .scope import ScrapeScope
from .selector import Matcher, find_by_identifiers, select_targets

LOGGER = logging.getLogger(__name__)


class ScrapeOrchestrator:
    """Runs one full speedtest per scrape and turns the results into observations.

    Servers are tested one after another and each server's stages always run
    in latency, download, upload order: concurrent transfers would share the
    link and skew each other's rates. A failed stage never stops the stages
    or servers after it; it only drops that stage's observation and marks the
    run unhealthy. Run-level failures (identity, server list, selection) are
    reported as ``up=0`` instead of being raised.
    """

    def __init__(
        self,
        client: DirectoryClient,
        runner: StageRunner,
        request: SelectionRequest,
        matcher: Matcher = find_by_identifiers,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.client = client
        self.runner = runner
        self.request = request
        self.matcher = matcher
        self._clock = clock

    def run(self, scope: ScrapeScope) -> RunOutcome:
        start = self._clock()
        observations: List[Observation] = []
        measured: List[MeasuredTarget] = []
        error: Optional[str] = None

        try:
            identity = self._fetch_identity(scope)
            targets = select_targets(self._fetch_candidates(scope), self.request, self.matcher)
        except RunAbortedError as exc:
            LOGGER.error("Aborting scrape: %s", exc)
            healthy = False
            error = str(exc)
        else:
            healthy = True
            for target in targets:
                result = self._measure_target(scope, identity, target, observations)
                measured.append(result)
                healthy = result.healthy and healthy

        elapsed = timedelta(seconds=self._clock() - start)
        observations.append(Observation(UP, 1.0 if healthy else 0.0))
        observations.append(Observation(SCRAPE_DURATION, elapsed.total_seconds()))
        LOGGER.info(
            "Scrape finished in %.1fs (healthy=%s, servers=%d)",
            elapsed.total_seconds(),
            healthy,
            len(measured),
        )
        return RunOutcome(
            observations=observations,
            healthy=healthy,
            elapsed=elapsed,
            targets=measured,
            error=error,
        )

    def _fetch_identity(self, scope: ScrapeScope) -> CallerIdentity:
        try:
            scope.check()
            return self.client.fetch_caller_identity(scope)
        except IdentityFetchError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise IdentityFetchError(f"could not fetch user information: {exc}") from exc

    def _fetch_candidates(self, scope: ScrapeScope) -> Sequence[CandidateTarget]:
        try:
            scope.check()
            return self.client.fetch_candidates(scope)
        except CandidateFetchError:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise CandidateFetchError(f"could not fetch server list: {exc}") from exc

    def _measure_target(
        self,
        scope: ScrapeScope,
        identity: CallerIdentity,
        target: CandidateTarget,
        observations: List[Observation],
    ) -> MeasuredTarget:
        measured = MeasuredTarget(target)
        labels = label_values(identity, target)
        LOGGER.info("Testing server %s (%s, %s)", target.id, target.name, target.country)

        for stage in STAGE_ORDER:
            value = self._run_stage(scope, stage, measured)
            if value is not None:
                observations.append(Observation(STAGE_METRICS[stage], value, labels))
        return measured

    def _run_stage(self, scope: ScrapeScope, stage: Stage, measured: MeasuredTarget) -> Optional[float]:
        target = measured.target
        try:
            scope.check(stage.value, target.id)
            if stage is Stage.LATENCY:
                value = self.runner.measure_latency(scope, target).total_seconds()
            elif stage is Stage.DOWNLOAD:
                value = float(self.runner.measure_download(scope, target))
            else:
                value = float(self.runner.measure_upload(scope, target))
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error("Failed to carry out %s test against server %s: %s", stage.value, target.id, exc)
            measured.fail(stage, str(exc))
            return None

        measured.record(stage, value)
        LOGGER.debug("Server %s %s result: %s", target.id, stage.value, value)
        return value
