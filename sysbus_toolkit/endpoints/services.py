from flask import current_app, jsonify

from ..flow.unit_control import UnitController
from ..logging_conf import get_logger

log = get_logger(__name__)


def _controller() -> UnitController:
    return UnitController(
        current_app.config["SYSBUS_TRANSPORT"],
        job_timeout=current_app.config["SYSBUS_JOB_TIMEOUT"],
    )


def api_service_status(name):
    state = _controller().get_unit_state(name)
    return jsonify({"unit": name, "state": state.value, "running": state.is_running}), 200


def api_start_service(name):
    log.info("API request: start %s", name)
    _controller().start_service(name)
    return jsonify({"unit": name, "message": f"{name} is running."}), 200


def api_stop_service(name):
    log.info("API request: stop %s", name)
    _controller().stop_service(name)
    return jsonify({"unit": name, "message": f"{name} is stopped."}), 200
