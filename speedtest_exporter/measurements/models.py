"""Shared dataclasses for measurements."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..config import NEAREST_SERVER_ID


class Stage(str, Enum):
    LATENCY = "latency"
    DOWNLOAD = "download"
    UPLOAD = "upload"


STAGE_ORDER: Tuple[Stage, ...] = (Stage.LATENCY, Stage.DOWNLOAD, Stage.UPLOAD)


@dataclass(frozen=True)
class CallerIdentity:
    ip: str
    lat: str
    lon: str
    isp: str


@dataclass(frozen=True)
class CandidateTarget:
    id: str
    name: str
    country: str
    lat: str
    lon: str
    distance: float
    url: str = ""
    host: str = ""


@dataclass(frozen=True)
class SelectionRequest:
    server_ids: Tuple[int, ...] = (NEAREST_SERVER_ID,)
    fallback: bool = False

    @property
    def nearest_only(self) -> bool:
        return self.server_ids == (NEAREST_SERVER_ID,)


@dataclass
class MeasuredTarget:
    """A selected target plus whatever its stages produced so far."""

    target: CandidateTarget
    results: Dict[Stage, float] = field(default_factory=dict)
    failures: Dict[Stage, str] = field(default_factory=dict)

    def record(self, stage: Stage, value: float) -> None:
        self.results[stage] = value

    def fail(self, stage: Stage, reason: str) -> None:
        self.failures[stage] = reason

    @property
    def healthy(self) -> bool:
        return not self.failures and all(stage in self.results for stage in STAGE_ORDER)


@dataclass(frozen=True)
class Observation:
    metric: str
    value: float
    labels: Tuple[str, ...] = ()


@dataclass
class RunOutcome:
    observations: List[Observation]
    healthy: bool
    elapsed: timedelta
    targets: List[MeasuredTarget] = field(default_factory=list)
    error: Optional[str] = None
