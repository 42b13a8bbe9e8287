"""Liveness endpoint so an external monitor can keep the process awake."""

import threading

from flask import Flask

from .config import HealthConfig
from .logging_config import create_execution_logger


def create_health_app(config: HealthConfig | None = None) -> Flask:
    """Flask app answering ``GET /`` with a fixed message."""
    config = config or HealthConfig()
    app = Flask(__name__)

    @app.route("/")
    def home():
        return config.message

    return app


def start_health_server(
    config: HealthConfig, execution_id: str | None = None
) -> threading.Thread:
    """Serve the liveness app from a daemon thread."""
    logger = create_execution_logger("health", execution_id)
    app = create_health_app(config)

    thread = threading.Thread(
        target=app.run,
        kwargs={"host": config.host, "port": config.port, "use_reloader": False},
        name="health-server",
        daemon=True,
    )
    thread.start()
    logger.info(f"Server running on port {config.port}", port=config.port)
    return thread
