"""
PowerBI REST calls for App-Owns-Data embedding with an RLS effective
identity.
"""

from typing import Any, Dict

import msal
import requests

from rls_identity.config import (
    PBI_API,
    PBI_CLIENT_ID,
    PBI_CLIENT_SECRET,
    PBI_HTTP_TIMEOUT_S,
    PBI_SCOPE,
    PBI_TENANT_ID,
)
from rls_identity.models import ParameterSchema


class PowerBIError(RuntimeError):
    """PowerBI or AAD returned an error."""


def is_configured() -> bool:
    return bool(PBI_TENANT_ID and PBI_CLIENT_ID and PBI_CLIENT_SECRET)


def get_access_token() -> str:
    """Acquire an AAD app token for the PowerBI API (client credentials)."""
    app = msal.ConfidentialClientApplication(
        PBI_CLIENT_ID,
        authority=f"https://login.microsoftonline.com/{PBI_TENANT_ID}",
        client_credential=PBI_CLIENT_SECRET,
    )
    result = app.acquire_token_for_client(scopes=[PBI_SCOPE])
    if "access_token" not in result:
        raise PowerBIError(result.get("error_description", "Failed to get AAD token"))
    return result["access_token"]


def build_token_request(schema: ParameterSchema, identity: str) -> Dict[str, Any]:
    """GenerateToken body: view-only, one effective identity bound to the dataset."""
    target = schema.powerbi
    return {
        "accessLevel": "View",
        "allowSaveAs": False,
        "datasets": [{"id": target.dataset_id}],
        "identities": [
            {
                "username": identity,
                "roles": [schema.rls_role],
                "datasets": [target.dataset_id],
            }
        ],
    }


def generate_embed_token(schema: ParameterSchema, identity: str) -> Dict[str, Any]:
    """Return ``{token, tokenId, expiration, embedUrl, reportId}`` for *schema*'s report."""
    target = schema.powerbi
    if target is None:
        raise PowerBIError(f"Report '{schema.report_id}' has no PowerBI target configured.")

    bearer = get_access_token()
    headers = {"Authorization": f"Bearer {bearer}", "Content-Type": "application/json"}
    base = f"{PBI_API}/groups/{target.workspace_id}/reports/{target.report_id}"

    try:
        r = requests.get(base, headers=headers, timeout=PBI_HTTP_TIMEOUT_S)
        r.raise_for_status()
        embed_url = r.json()["embedUrl"]

        t = requests.post(
            f"{base}/GenerateToken",
            headers=headers,
            json=build_token_request(schema, identity),
            timeout=PBI_HTTP_TIMEOUT_S,
        )
        t.raise_for_status()
        data = t.json()
    except requests.RequestException as e:
        raise PowerBIError(f"PowerBI request failed: {e}") from e

    return {
        "token": data["token"],
        "tokenId": data.get("tokenId"),
        "expiration": data.get("expiration"),
        "embedUrl": embed_url,
        "reportId": target.report_id,
    }
