"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from rls_identity.audit import SqlAuditLog, StdoutAuditLog
from rls_identity.config import DB_URI, IDENTITY_TOKEN_MINUTES, REPORTS_CONFIG, get_env
from rls_identity.database import init_engine
from rls_identity.schema import load_registry
from rls_identity.api.routes import register_routes


def create_app(registry=None, audit=None, engine=None):
    """Build and return a fully configured Flask application.

    Anything not passed in is initialised from the environment.
    """
    app = Flask(__name__)
    CORS(app)

    # ── Initialise shared resources ──────────────────────────────────
    try:
        if registry is None:
            print(f"[init] Loading report registry from {REPORTS_CONFIG}...")
            registry = load_registry(REPORTS_CONFIG)

        if engine is None and DB_URI:
            print("[init] Initializing database connection...")
            engine = init_engine(DB_URI)

        if audit is None:
            audit = SqlAuditLog(engine) if engine is not None else StdoutAuditLog()

        print(f"[init] ✓ API server ready ({len(registry)} reports)")
    except Exception as e:
        print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, registry, audit, engine)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Report Parameter Identity – REST API Server")
    print("=" * 60)

    _ = get_env("JWT_SECRET_KEY")  # fail early if missing

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] Identity credential lifetime: {IDENTITY_TOKEN_MINUTES} minutes")
    print("\nAPI Endpoints:")
    print(f"  - GET  http://{host}:{port}/api/reports")
    print(f"  - GET  http://{host}:{port}/api/reports/<report_id>/parameters")
    print(f"  - POST http://{host}:{port}/api/reports/<report_id>/embed")
    print(f"  - POST http://{host}:{port}/api/reports/<report_id>/view")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
