from typing import Optional

from flask import Flask, jsonify

from .config import Settings
from .endpoints.network import api_network_connectivity, api_network_state
from .endpoints.services import api_service_status, api_start_service, api_stop_service
from .errors import (
    BusError,
    ConvergenceError,
    DecodeError,
    JobTimeoutError,
    OperationInterrupted,
    ToolkitError,
)
from .infra.bus_manager import get_transport
from .infra.transport import Transport
from .logging_conf import get_logger

log = get_logger(__name__)

_STATUS_BY_ERROR = (
    (JobTimeoutError, 504),
    (ConvergenceError, 409),
    (OperationInterrupted, 503),
    (BusError, 502),
    (DecodeError, 502),
)


def _handle_toolkit_error(exc: ToolkitError):
    status = next((code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind)), 500)
    log.error("❌ %s: %s", type(exc).__name__, exc)
    return jsonify({"error": str(exc), "kind": type(exc).__name__}), status


def create_app(transport: Optional[Transport] = None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.config["SYSBUS_TRANSPORT"] = transport or get_transport()
    app.config["SYSBUS_JOB_TIMEOUT"] = settings.job_timeout

    # Register routes
    app.add_url_rule("/service/<name>", view_func=api_service_status, methods=["GET"])
    app.add_url_rule("/service/<name>/start", view_func=api_start_service, methods=["POST"])
    app.add_url_rule("/service/<name>/stop", view_func=api_stop_service, methods=["POST"])
    app.add_url_rule("/network/state", view_func=api_network_state, methods=["GET"])
    app.add_url_rule("/network/connectivity", view_func=api_network_connectivity, methods=["GET"])

    app.register_error_handler(ToolkitError, _handle_toolkit_error)
    return app


def serve(settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.from_env()
    app = create_app(settings=settings)
    log.info("🚀 API listening on %s:%d", settings.api_host, settings.api_port)
    app.run(host=settings.api_host, port=settings.api_port, threaded=True)
