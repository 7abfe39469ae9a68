"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Identity wire format ─────────────────────────────────────────────
# The separator doubles as the DAX path delimiter, so it is fixed.
SEPARATOR = "|"

# PowerBI rejects effective identity usernames longer than this.
MAX_IDENTITY_LENGTH = 256

# ── Report registry ──────────────────────────────────────────────────
REPORTS_CONFIG = os.getenv("REPORTS_CONFIG", "config/reports.json")

# ── Identity credential ──────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
IDENTITY_TOKEN_MINUTES = min(max(int(os.getenv("IDENTITY_TOKEN_MINUTES", "60")), 1), 120)

# ── Identity provider (end-user bearer tokens) ───────────────────────
IDP_JWKS_URL = os.getenv("IDP_JWKS_URL", "")
IDP_SHARED_SECRET = os.getenv("IDP_SHARED_SECRET", "")
IDP_AUDIENCE = os.getenv("IDP_AUDIENCE", "")

# ── Audit / dataset database ─────────────────────────────────────────
DB_URI = os.getenv("DB_URI", "")
MAX_RESULTS_RETURN = 1000

# ── PowerBI service principal ────────────────────────────────────────
PBI_TENANT_ID = os.getenv("PBI_TENANT_ID", "")
PBI_CLIENT_ID = os.getenv("PBI_CLIENT_ID", "")
PBI_CLIENT_SECRET = os.getenv("PBI_CLIENT_SECRET", "")
PBI_SCOPE = "https://analysis.windows.net/powerbi/api/.default"
PBI_API = "https://api.powerbi.com/v1.0/myorg"
PBI_HTTP_TIMEOUT_S = 30


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
