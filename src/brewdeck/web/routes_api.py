"""API routes: REST endpoints consumed by the browser UI.

All endpoints return JSON and are registered under the /api prefix.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from brewdeck.core.config import Settings
from brewdeck.core.errors import BrewError
from brewdeck.core.manager import BrewManager
from brewdeck.web.responses import error_response, missing_parameter

api_bp = Blueprint("api", __name__)

PACKAGE_ACTIONS = {
    "install": "installed",
    "upgrade": "upgraded",
    "uninstall": "uninstalled",
    "reinstall": "reinstalled",
}


def _manager() -> BrewManager:
    return current_app.extensions["brewdeck"]


def _settings() -> Settings:
    return current_app.config["BREWDECK_SETTINGS"]


def _budget() -> float:
    return _settings().request_timeout


def _lookup_budget() -> float:
    return _settings().lookup_timeout


async def _package_action(name: str, action: str):  # type: ignore[no-untyped-def]
    manager = _manager()
    try:
        await getattr(manager, action)(name, timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify({"status": "success", "package": name, "action": PACKAGE_ACTIONS[action]})


async def _pin(name: str, action: str | None):  # type: ignore[no-untyped-def]
    try:
        performed = await _manager().pin(name, action, timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify({"status": "success", "package": name, "action": performed})


# ── Health ──────────────────────────────────────────────────────────


@api_bp.route("/health")
def api_health():  # type: ignore[no-untyped-def]
    return jsonify({"status": "ok"})


# ── Packages ────────────────────────────────────────────────────────


@api_bp.route("/packages", methods=["GET"])
async def list_packages():  # type: ignore[no-untyped-def]
    """All installed formulae followed by casks."""
    try:
        pkgs = await _manager().list_installed(timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify([p.to_dict() for p in pkgs])


@api_bp.route("/packages/install", methods=["POST"])
async def install_package():  # type: ignore[no-untyped-def]
    name = request.args.get("name", "")
    if not name:
        return missing_parameter("name")
    return await _package_action(name, "install")


@api_bp.route("/packages/upgrade", methods=["POST"])
async def upgrade_package():  # type: ignore[no-untyped-def]
    name = request.args.get("name", "")
    if not name:
        return missing_parameter("name")
    return await _package_action(name, "upgrade")


@api_bp.route("/packages/uninstall", methods=["DELETE"])
async def uninstall_package():  # type: ignore[no-untyped-def]
    name = request.args.get("name", "")
    if not name:
        return missing_parameter("name")
    return await _package_action(name, "uninstall")


@api_bp.route("/packages/reinstall", methods=["POST"])
async def reinstall_package():  # type: ignore[no-untyped-def]
    name = request.args.get("name", "")
    if not name:
        return missing_parameter("name")
    return await _package_action(name, "reinstall")


@api_bp.route("/packages/pin", methods=["POST"])
async def pin_package():  # type: ignore[no-untyped-def]
    """Pin or unpin; ``action`` defaults to pin."""
    name = request.args.get("name", "")
    if not name:
        return missing_parameter("name")
    return await _pin(name, request.args.get("action"))


@api_bp.route("/packages/<name>/<action>", methods=["POST", "DELETE"])
async def package_action(name: str, action: str):  # type: ignore[no-untyped-def]
    """Path-style alias: /api/packages/wget/upgrade."""
    if action == "pin":
        return await _pin(name, request.args.get("action"))
    if action not in PACKAGE_ACTIONS:
        return jsonify({"error": f"Unknown action '{action}'", "code": "NOT_FOUND"}), 404
    return await _package_action(name, action)


@api_bp.route("/packages/usage", methods=["GET"])
async def package_usage():  # type: ignore[no-untyped-def]
    name = request.args.get("name", "")
    if not name:
        return missing_parameter("name")

    try:
        usage = await _manager().usage(name, timeout=_lookup_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify({"usage": usage})


@api_bp.route("/packages/search", methods=["GET"])
async def search_packages():  # type: ignore[no-untyped-def]
    """Matching package names; an empty or missing ``q`` yields []."""
    query = request.args.get("q", "")
    if not query:
        return jsonify([])

    try:
        results = await _manager().search(query, timeout=_lookup_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify(results)


@api_bp.route("/packages/size", methods=["GET"])
async def package_size():  # type: ignore[no-untyped-def]
    name = request.args.get("name", "")
    if not name:
        return missing_parameter("name")

    try:
        size = await _manager().package_size(name, timeout=_lookup_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify({"name": name, "size": size})


# ── Services ────────────────────────────────────────────────────────


@api_bp.route("/services", methods=["GET"])
async def list_services():  # type: ignore[no-untyped-def]
    try:
        services = await _manager().list_services(timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify([s.to_dict() for s in services])


@api_bp.route("/services/control", methods=["POST"])
async def control_service():  # type: ignore[no-untyped-def]
    name = request.args.get("name", "")
    action = request.args.get("action", "")
    if not name:
        return missing_parameter("name")
    if not action:
        return missing_parameter("action")

    try:
        await _manager().control_service(name, action, timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify({"status": "success", "service": name, "action": action})


# ── System ──────────────────────────────────────────────────────────


@api_bp.route("/update", methods=["POST"])
@api_bp.route("/system/update", methods=["POST"])
async def system_update():  # type: ignore[no-untyped-def]
    try:
        output = await _manager().update(timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify({"message": "Homebrew updated successfully", "output": output})


@api_bp.route("/cleanup", methods=["POST"])
@api_bp.route("/system/cleanup", methods=["POST"])
async def system_cleanup():  # type: ignore[no-untyped-def]
    try:
        output = await _manager().cleanup(timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify({"message": "Cleanup completed successfully", "output": output})


@api_bp.route("/doctor", methods=["POST"])
async def system_doctor():  # type: ignore[no-untyped-def]
    try:
        report = await _manager().doctor(timeout=_budget())
    except BrewError as e:
        return error_response(e)

    return jsonify(report.to_dict())
