"""Metric names and label formatting shared by the orchestrator and the exporter."""

from __future__ import annotations

from typing import Dict, Tuple

from .models import CallerIdentity, CandidateTarget, Stage

NAMESPACE = "speedtest"

UP = f"{NAMESPACE}_up"
SCRAPE_DURATION = f"{NAMESPACE}_scrape_duration_seconds"
LATENCY = f"{NAMESPACE}_latency_seconds"
UPLOAD = f"{NAMESPACE}_upload_speed_bytes_per_second"
DOWNLOAD = f"{NAMESPACE}_download_speed_bytes_per_second"

STAGE_METRICS: Dict[Stage, str] = {
    Stage.LATENCY: LATENCY,
    Stage.DOWNLOAD: DOWNLOAD,
    Stage.UPLOAD: UPLOAD,
}

LABEL_NAMES: Tuple[str, ...] = (
    "user_lat",
    "user_lon",
    "user_ip",
    "user_isp",
    "server_lat",
    "server_lon",
    "server_id",
    "server_name",
    "server_country",
    "distance",
)


def format_distance(distance: float) -> str:
    return f"{distance:.0f}"


def label_values(identity: CallerIdentity, target: CandidateTarget) -> Tuple[str, ...]:
    """Label values in ``LABEL_NAMES`` order; identical for every per-target metric."""
    return (
        identity.lat,
        identity.lon,
        identity.ip,
        identity.isp,
        target.lat,
        target.lon,
        target.id,
        target.name,
        target.country,
        format_distance(target.distance),
    )
