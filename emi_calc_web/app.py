import logging
from dataclasses import replace
from typing import Any, Dict, Optional
from uuid import uuid4

from flask import Flask, current_app, jsonify, redirect, render_template, request, session, url_for

from emi_calc.config import Settings
from emi_calc.data_models import EmiResult, LoanTerms
from emi_calc.engine import aggregate_yearly, calculate, preview_restructure
from emi_calc.exceptions import LoanCalculationError
from emi_calc.formatter import format_compact_currency, format_currency, format_percentage
from emi_calc_web.scenario_store import ScenarioStore, create_store

logger = logging.getLogger(__name__)

INVALID_DETAILS_MESSAGE = "Enter valid loan details"


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _settings() -> Settings:
    return current_app.config["EMI_SETTINGS"]


def _store() -> ScenarioStore:
    return current_app.extensions["emi_scenario_store"]


def _optional(payload: Dict[str, Any], key: str) -> Optional[Any]:
    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def _json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _run_calculation(payload: Dict[str, Any]) -> EmiResult:
    settings = _settings()
    terms = LoanTerms.from_values(
        _optional(payload, "principal"),
        _optional(payload, "rate"),
        _optional(payload, "tenure"),
        payload.get("tenure_unit") or "months",
    )
    return calculate(terms, places=settings.rounding_places, settle_final=settings.settle_final)


def _error_response(exc: LoanCalculationError):
    logger.info("Rejected loan details: %s", exc)
    return jsonify({"error": str(exc), "message": INVALID_DETAILS_MESSAGE}), 400


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """Application factory.

    ``overrides`` may replace any ``Settings`` field by name, e.g.
    ``{"scenario_database_url": "sqlite://"}`` in tests.
    """
    settings = Settings.from_env()
    if overrides:
        settings = replace(settings, **overrides)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["EMI_SETTINGS"] = settings
    app.extensions["emi_scenario_store"] = create_store(
        settings.scenario_database_url, max_per_user=settings.max_scenarios
    )

    symbol = settings.currency_symbol
    app.jinja_env.filters["currency"] = lambda v: format_currency(v, symbol)
    app.jinja_env.filters["compact_currency"] = lambda v: format_compact_currency(v, symbol)
    app.jinja_env.filters["percentage"] = format_percentage

    @app.route("/", methods=["GET", "POST"])
    def index():
        result = None
        yearly = None
        error = None
        form = request.form if request.method == "POST" else {}
        user_token = _ensure_user_token()

        if request.method == "POST":
            try:
                result = _run_calculation(form)
                yearly = aggregate_yearly(result.schedule)
                if form.get("action") == "save":
                    _store().add_scenario(
                        user_token,
                        uuid4().hex,
                        form.get("scenario_name", "").strip() or "Quote",
                        result,
                    )
            except LoanCalculationError as exc:
                logger.info("Rejected loan details: %s", exc)
                error = INVALID_DETAILS_MESSAGE

        return render_template(
            "index.html",
            form=form,
            result=result,
            yearly=yearly,
            error=error,
            scenarios=_store().list_scenarios(user_token),
        )

    @app.post("/api/emi")
    def api_emi():
        payload = _json_payload()
        try:
            result = _run_calculation(payload)
        except LoanCalculationError as exc:
            return _error_response(exc)
        return jsonify(result.to_dict())

    @app.post("/api/restructure/preview")
    def api_restructure_preview():
        payload = _json_payload()
        try:
            preview = preview_restructure(
                _optional(payload, "outstanding_principal"),
                _optional(payload, "interest_rate"),
                _optional(payload, "remaining_months"),
                new_rate=_optional(payload, "new_interest_rate"),
                new_tenure_months=_optional(payload, "new_tenure"),
                places=_settings().rounding_places,
            )
        except LoanCalculationError as exc:
            return _error_response(exc)
        return jsonify(preview.to_dict())

    @app.get("/api/scenarios")
    def api_list_scenarios():
        return jsonify(_store().list_scenarios(_ensure_user_token()))

    @app.post("/api/scenarios")
    def api_save_scenario():
        payload = _json_payload()
        try:
            result = _run_calculation(payload)
        except LoanCalculationError as exc:
            return _error_response(exc)
        scenario_id = uuid4().hex
        _store().add_scenario(
            _ensure_user_token(),
            scenario_id,
            str(payload.get("name") or "Quote").strip(),
            result,
        )
        return jsonify({"id": scenario_id}), 201

    @app.delete("/api/scenarios/<scenario_id>")
    def api_delete_scenario(scenario_id: str):
        if not _store().remove_scenario(session.get("user_token"), scenario_id):
            return jsonify({"error": "not found"}), 404
        return "", 204

    @app.post("/scenarios/remove")
    def remove_scenario():
        _store().remove_scenario(session.get("user_token"), request.form.get("scenario_id"))
        return redirect(url_for("index"))

    @app.post("/scenarios/clear")
    def clear_scenarios():
        _store().clear_scenarios(session.get("user_token"))
        return redirect(url_for("index"))

    return app


if __name__ == "__main__":
    print("Starting EMI calculator web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
