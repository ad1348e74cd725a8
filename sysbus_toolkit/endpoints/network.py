from flask import current_app, jsonify

from ..core.nm_helpers import check_connectivity, get_manager_state
from ..core.states import NMConnectivity, NMState


def _query(fn):
    transport = current_app.config["SYSBUS_TRANSPORT"]
    conn = transport.connect()
    try:
        return fn(transport, conn)
    finally:
        transport.close(conn)


def api_network_state():
    code = _query(get_manager_state)
    return jsonify({"state": code, "label": NMState.parse(code).label})


def api_network_connectivity():
    code = _query(check_connectivity)
    return jsonify({"connectivity": code, "label": NMConnectivity.parse(code).label})
