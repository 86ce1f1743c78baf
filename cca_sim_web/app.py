import io
import os
from typing import Optional
from uuid import uuid4

from flask import Flask, jsonify, request, send_file, session

from cca_sim.engine import run_simulation
from cca_sim.export import build_accruals_workbook, build_results_workbook, serialize_report
from cca_sim.loader import config_from_dict, config_to_dict
from cca_sim.report_pdf import build_accruals_pdf, build_results_pdf
from cca_sim_web.scenario_store import ScenarioStore, create_store_from_env

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIMETYPE = "application/pdf"


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _config_from_request():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    return config_from_dict(payload.get("config", payload))


def _workbook_response(workbook, filename: str):
    output = io.BytesIO()
    workbook.save(output)
    output.seek(0)
    return send_file(output, as_attachment=True, download_name=filename, mimetype=XLSX_MIMETYPE)


def _pdf_response(content: bytes, filename: str):
    return send_file(io.BytesIO(content), as_attachment=True, download_name=filename, mimetype=PDF_MIMETYPE)


def create_app(store: Optional[ScenarioStore] = None) -> Flask:
    """Build the Flask application.

    The scenario store defaults to the database named by
    ``CCA_SCENARIO_DATABASE_URL`` (SQLite in the working directory otherwise).
    """
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    scenario_store = store or create_store_from_env(
        os.environ.get("CCA_SCENARIO_DATABASE_URL"),
        os.environ.get("CCA_MAX_SCENARIOS"),
    )

    @app.errorhandler(ValueError)
    def handle_value_error(exc):
        app.logger.warning("Rejected request on %s: %s", request.path, exc)
        return jsonify({"error": str(exc)}), 400

    @app.post("/api/simulate")
    def simulate():
        report = run_simulation(_config_from_request())
        return jsonify(serialize_report(report))

    @app.post("/api/export/results.xlsx")
    def export_results():
        report = run_simulation(_config_from_request())
        return _workbook_response(build_results_workbook(report), "cca_results.xlsx")

    @app.post("/api/export/monthly.xlsx")
    def export_monthly():
        report = run_simulation(_config_from_request())
        return _workbook_response(build_accruals_workbook(report), "cca_monthly_accruals.xlsx")

    @app.post("/api/export/results.pdf")
    def export_results_pdf():
        report = run_simulation(_config_from_request())
        return _pdf_response(build_results_pdf(report), "cca_report.pdf")

    @app.post("/api/export/monthly.pdf")
    def export_monthly_pdf():
        report = run_simulation(_config_from_request())
        return _pdf_response(build_accruals_pdf(report), "cca_monthly_accruals.pdf")

    @app.get("/api/scenarios")
    def list_scenarios():
        return jsonify(scenario_store.list_scenarios(_ensure_user_token()))

    @app.post("/api/scenarios")
    def save_scenario():
        user_token = _ensure_user_token()
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValueError("Request body must be a JSON object")
        # Normalise through the loader so that only valid configurations are stored.
        config = config_to_dict(config_from_dict(payload.get("config", {})))
        name = str(payload.get("name", "")).strip() or "Scenario"
        scenario_id = uuid4().hex
        scenario_store.add_scenario(user_token, scenario_id, name, config)
        return jsonify({"id": scenario_id, "name": name}), 201

    @app.get("/api/scenarios/<scenario_id>")
    def load_scenario(scenario_id: str):
        scenario = scenario_store.get_scenario(_ensure_user_token(), scenario_id)
        if scenario is None:
            return jsonify({"error": "Scenario not found"}), 404
        report = run_simulation(config_from_dict(scenario["config"]))
        return jsonify({**scenario, "report": serialize_report(report)})

    @app.delete("/api/scenarios/<scenario_id>")
    def remove_scenario(scenario_id: str):
        if not scenario_store.remove_scenario(_ensure_user_token(), scenario_id):
            return jsonify({"error": "Scenario not found"}), 404
        return "", 204

    @app.delete("/api/scenarios")
    def clear_scenarios():
        scenario_store.clear_scenarios(_ensure_user_token())
        return "", 204

    return app


if __name__ == "__main__":
    print("Starting CCA simulator web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
