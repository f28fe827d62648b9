"""Application bootstrap helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from .config import AppConfig, apply_overrides, load_config
from .exporter import MetricsExporter
from .gate import ExclusivityGate
from .logging_setup import configure_logging
from .measurements.models import SelectionRequest
from .measurements.orchestrator import ScrapeOrchestrator
from .measurements.speedtest_runner import SpeedtestCliBackend
from .web.app import create_web_app


class ApplicationContext:
    """Holds shared singletons for the service."""

    def __init__(self, config: AppConfig):
        self.config = config
        configure_logging(config)
        self.backend = SpeedtestCliBackend(config.speedtest)
        self.orchestrator = ScrapeOrchestrator(
            client=self.backend,
            runner=self.backend,
            request=SelectionRequest(
                server_ids=tuple(config.speedtest.server_ids),
                fallback=config.speedtest.server_fallback,
            ),
        )
        self.exporter = MetricsExporter(self.orchestrator)
        self.gate = ExclusivityGate()
        self.web_app = create_web_app(config=config, exporter=self.exporter, gate=self.gate)


def bootstrap(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> ApplicationContext:
    """Load configuration, apply command-line overrides and wire dependencies."""

    config_file = Path(config_path).resolve() if config_path else None
    config = load_config(str(config_file)) if config_file else load_config()
    apply_overrides(config, **(overrides or {}))
    return ApplicationContext(config)
