"""
Flask route handlers for the REST API.
"""

import sys
import traceback

from flask import request, jsonify
from sqlalchemy import text as sa_text

from rls_identity import powerbi
from rls_identity.config import MAX_RESULTS_RETURN
from rls_identity.database import load_dataset
from rls_identity.encoder import encode_identity
from rls_identity.errors import InvalidParameterError, ParameterNotAllowedError
from rls_identity.evaluator import filter_frame
from rls_identity.api.auth import issue_identity_token, read_identity_token, user_required


def describe_parameter(spec):
    return {
        "name": spec.name,
        "type": spec.type,
        "allowed": list(spec.allowed) if spec.allowed is not None else None,
        "minimum": spec.minimum,
        "maximum": spec.maximum,
        "pattern": spec.pattern,
        "groups": sorted(spec.groups) if spec.groups is not None else None,
        "free_text": spec.free_text,
    }


def rejection(e, status):
    kind = "invalid_parameter" if isinstance(e, InvalidParameterError) else "parameter_not_allowed"
    return jsonify({
        "success": False,
        "error": kind,
        "parameter": e.parameter,
        "reason": e.reason,
        "details": str(e),
    }), status


def register_routes(app, registry, audit, engine):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Report Parameter Identity API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "reports": "/api/reports",
                "parameters": "/api/reports/<report_id>/parameters",
                "embed": "/api/reports/<report_id>/embed",
                "view": "/api/reports/<report_id>/view",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        checks = {"registry": bool(registry), "database": None, "powerbi": powerbi.is_configured()}
        if engine is not None:
            try:
                with engine.connect() as conn:
                    conn.execute(sa_text("SELECT 1"))
                checks["database"] = True
            except Exception:
                checks["database"] = False

        healthy = checks["registry"] and checks["database"] is not False
        return jsonify({
            "status": "healthy" if healthy else "unhealthy",
            "checks": checks,
            "reports": len(registry),
        }), 200 if healthy else 503

    # ── Reports ──────────────────────────────────────────────────────

    @app.route("/api/reports", methods=["GET"])
    @user_required
    def list_reports():
        return jsonify({
            "success": True,
            "reports": [
                {"report_id": rid, "version": s.version, "parameters": s.names}
                for rid, s in sorted(registry.items())
            ],
        }), 200

    @app.route("/api/reports/<report_id>/parameters", methods=["GET"])
    @user_required
    def get_parameters(report_id):
        schema = registry.get(report_id)
        if schema is None:
            return jsonify({"error": "Report not found"}), 404
        return jsonify({
            "success": True,
            "report_id": report_id,
            "version": schema.version,
            "parameters": [describe_parameter(p) for p in schema],
        }), 200

    # ── Embed: validate, encode, issue credential ────────────────────

    @app.route("/api/reports/<report_id>/embed", methods=["POST"])
    @user_required
    def embed(report_id):
        schema = registry.get(report_id)
        if schema is None:
            return jsonify({"error": "Report not found"}), 404

        if not request.is_json:
            return jsonify({"error": "Content-Type must be application/json"}), 400
        data = request.get_json(silent=True) or {}
        params = data.get("parameters")
        if not isinstance(params, dict):
            return jsonify({"error": "parameters object is required"}), 400

        subject = request.user.get("sub")
        try:
            identity = encode_identity(params, schema, audit=audit, subject=subject)
        except InvalidParameterError as e:
            return rejection(e, 400)
        except ParameterNotAllowedError as e:
            return rejection(e, 403)

        credential = issue_identity_token(identity, schema, subject)
        response = {
            "success": True,
            "report_id": report_id,
            "schema_version": schema.version,
            "token": credential["token"],
            "expires_at": credential["expires_at"],
        }

        if schema.powerbi is not None and powerbi.is_configured():
            try:
                response["embed"] = powerbi.generate_embed_token(schema, identity)
            except powerbi.PowerBIError as e:
                print(f"[ERROR] Embed token generation failed for '{report_id}': {e}", file=sys.stderr)
                return jsonify({"success": False, "error": "Embed token generation failed"}), 502

        return jsonify(response), 200

    # ── View: evaluate rows against the credential ───────────────────

    @app.route("/api/reports/<report_id>/view", methods=["POST"])
    @user_required
    def view(report_id):
        schema = registry.get(report_id)
        if schema is None:
            return jsonify({"error": "Report not found"}), 404
        if engine is None:
            return jsonify({"error": "Dataset source not configured"}), 503

        data = request.get_json(silent=True) or {}
        identity = read_identity_token(data.get("token"), schema)

        # Every way of failing looks the same to the caller: no rows.
        visible = []
        truncated = False
        if identity is not None:
            try:
                df = load_dataset(engine, schema.dataset_table)
            except Exception as e:
                print(f"[ERROR] Dataset load failed for '{report_id}': {e}", file=sys.stderr)
                traceback.print_exc()
                df = None
            if df is not None:
                rows = filter_frame(df, identity, schema)
                truncated = len(rows) > MAX_RESULTS_RETURN
                visible = rows.head(MAX_RESULTS_RETURN).to_dict(orient="records")

        return jsonify({
            "success": True,
            "report_id": report_id,
            "row_count": len(visible),
            "data": visible,
            "truncated": truncated,
        }), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "message": str(e)}), 500
