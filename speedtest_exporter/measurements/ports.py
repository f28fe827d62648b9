from __future__ import annotations

from datetime import timedelta
from typing import Protocol, Sequence

from .models import CallerIdentity, CandidateTarget
from .scope import ScrapeScope


class DirectoryClient(Protocol):
    def fetch_caller_identity(self, scope: ScrapeScope) -> CallerIdentity:
        """Resolve the public address, location and ISP of this host."""

    def fetch_candidates(self, scope: ScrapeScope) -> Sequence[CandidateTarget]:
        """Return the available servers ordered nearest-first."""


class StageRunner(Protocol):
    def measure_latency(self, scope: ScrapeScope, target: CandidateTarget) -> timedelta:
        """Return the round-trip latency to the target."""

    def measure_download(self, scope: ScrapeScope, target: CandidateTarget) -> float:
        """Return the download rate from the target in bytes per second."""

    def measure_upload(self, scope: ScrapeScope, target: CandidateTarget) -> float:
        """Return the upload rate to the target in bytes per second."""
