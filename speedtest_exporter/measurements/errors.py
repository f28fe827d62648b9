"""Exception hierarchy for scrape orchestration."""

from __future__ import annotations

from typing import Optional


class SpeedtestExporterError(Exception):
    """Base class for every error raised by the measurement layer."""


class RunAbortedError(SpeedtestExporterError):
    """A failure that prevents any target from being measured in this run."""


class IdentityFetchError(RunAbortedError):
    pass


class CandidateFetchError(RunAbortedError):
    pass


class NoCandidatesError(RunAbortedError):
    def __init__(self, message: str = "no servers available") -> None:
        super().__init__(message)


class ServerNotFoundError(RunAbortedError):
    def __init__(self, server_id: int, message: Optional[str] = None) -> None:
        self.server_id = server_id
        super().__init__(message or f"server {server_id} not found and fallback disabled")


class StageFailure(SpeedtestExporterError):
    """One stage against one target failed; sibling stages and targets still run."""

    def __init__(self, stage: Optional[str], target_id: Optional[str], message: str) -> None:
        self.stage = stage
        self.target_id = target_id
        super().__init__(message)


class CancellationError(StageFailure):
    def __init__(
        self,
        stage: Optional[str] = None,
        target_id: Optional[str] = None,
        message: str = "scrape scope cancelled",
    ) -> None:
        super().__init__(stage, target_id, message)
