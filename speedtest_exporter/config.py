"""Configuration loading helpers for the speedtest exporter."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import yaml

NEAREST_SERVER_ID = -1

SECONDS_PER_SERVER = 60
SCRAPE_TIMEOUT_SLACK = 10


@dataclass
class PathsConfig:
    logs_dir: Path


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 9090


@dataclass
class SpeedtestConfig:
    server_ids: List[int] = field(default_factory=lambda: [NEAREST_SERVER_ID])
    server_fallback: bool = False
    timeout: float = 10.0
    secure: bool = False
    threads: Optional[int] = None
    pre_allocate: bool = True

    def __post_init__(self) -> None:
        self.server_ids = parse_server_ids(self.server_ids)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_to_file: bool = True
    filename: str = "exporter.log"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5


@dataclass
class AppConfig:
    root_dir: Path
    paths: PathsConfig
    web: WebConfig
    speedtest: SpeedtestConfig
    logging: LoggingConfig

    @property
    def scrape_timeout(self) -> float:
        """Upper bound in seconds for one full scrape across all requested servers."""
        return float(len(self.speedtest.server_ids) * SECONDS_PER_SERVER + SCRAPE_TIMEOUT_SLACK)


def parse_server_ids(raw: Union[str, int, List[Any]]) -> List[int]:
    """Normalise a comma-separated string (or list) of server ids into integers."""

    if isinstance(raw, int):
        parts: List[Any] = [raw]
    elif isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = list(raw)

    ids: List[int] = []
    for part in parts:
        text = str(part).strip()
        if not text:
            continue
        try:
            ids.append(int(text))
        except ValueError:
            raise ValueError(f"invalid server ID {text!r}") from None
    if not ids:
        raise ValueError("server_ids must not be empty")
    return ids


def _as_path(base: Path, maybe_path: Optional[str]) -> Path:
    if not maybe_path:
        raise ValueError("Path configuration entries cannot be empty")
    path = (base / maybe_path).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load application configuration, falling back to defaults without a file."""

    data: Dict[str, Any] = {}
    if path:
        source_path = Path(path)
        if not source_path.exists():
            raise FileNotFoundError(f"Missing configuration file at {source_path}")
        root_dir = source_path.resolve().parent
        with source_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    else:
        root_dir = Path.cwd()

    paths_data = data.get("paths", {})
    paths = PathsConfig(logs_dir=_as_path(root_dir, paths_data.get("logs_dir", "logs")))

    return AppConfig(
        root_dir=root_dir,
        paths=paths,
        web=WebConfig(**data.get("web", {})),
        speedtest=SpeedtestConfig(**data.get("speedtest", {})),
        logging=LoggingConfig(**data.get("logging", {})),
    )


def apply_overrides(
    config: AppConfig,
    host: Optional[str] = None,
    port: Optional[int] = None,
    server_ids: Optional[str] = None,
    server_fallback: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> AppConfig:
    """Apply command-line values on top of the loaded configuration."""

    if host:
        config.web.host = host
    if port:
        config.web.port = port
    if server_ids is not None:
        config.speedtest.server_ids = parse_server_ids(server_ids)
    if server_fallback is not None:
        config.speedtest.server_fallback = server_fallback
    if log_level:
        config.logging.level = log_level
    return config
