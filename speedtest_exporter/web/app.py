"""Flask application factory and HTTP routes."""

from __future__ import annotations

import logging

from flask import Flask, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from ..config import AppConfig
from ..exporter import MetricsExporter, ScrapeCollector
from ..gate import ExclusivityGate, GateBusyError
from ..measurements.scope import ScrapeScope

LOGGER = logging.getLogger(__name__)

METRICS_PATH = "/metrics"

INDEX_PAGE = f"""<html>
<head><title>Speedtest Exporter</title></head>
<body>
<h1>Speedtest Exporter</h1>
<p>Metrics page will take approx 40 seconds per server to load and show results, as the exporter carries out a speedtest when scraped.</p>
<p><a href='{METRICS_PATH}'>Metrics</a></p>
<p><a href='/health'>Health</a></p>
</body>
</html>"""


def create_web_app(config: AppConfig, exporter: MetricsExporter, gate: ExclusivityGate) -> Flask:
    app = Flask(__name__)

    @app.route("/")
    def index():
        return Response(INDEX_PAGE, mimetype="text/html")

    @app.get("/health")
    def health():
        return Response("OK", mimetype="text/plain")

    @app.get(METRICS_PATH)
    def metrics():
        try:
            with gate.hold():
                with ScrapeScope(timeout=config.scrape_timeout) as scope:
                    registry = CollectorRegistry()
                    registry.register(ScrapeCollector(exporter, scope))
                    payload = generate_latest(registry)
        except GateBusyError as exc:
            LOGGER.warning("Rejected scrape: %s", exc)
            return Response(f"{exc}\n", status=503, mimetype="text/plain")
        return Response(payload, content_type=CONTENT_TYPE_LATEST)

    return app
