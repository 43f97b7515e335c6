import logging

import httpx
from pydantic import ValidationError

from transit_sync.core.errors import AuthError
from transit_sync.jobs.sync.types import AuthContext

from .config import IettConfig
from .schemas import IettTokenResponse

logger = logging.getLogger(__name__)

BASE_HEADERS = {
    "Host": "ntcapi.iett.istanbul",
    "Content-Type": "application/json; charset=UTF-8",
}


def acquire(cfg: IettConfig, client: httpx.Client) -> AuthContext:
    """Client-credentials grant against the IETT token endpoint. No retry, no refresh."""
    body = {
        "client_id": cfg.client_id,
        "client_secret": cfg.client_secret,
        "grant_type": "client_credentials",
        "scope": cfg.scope,
    }

    logger.info("Requesting IETT access token")
    try:
        r = client.post(cfg.token_url, json=body, headers=BASE_HEADERS)
        r.raise_for_status()
        token = IettTokenResponse.model_validate(r.json())
    except (httpx.HTTPError, ValueError, ValidationError) as e:
        raise AuthError(f"IETT token request failed: {e!r}") from e

    if not token.access_token:
        raise AuthError("IETT token response carried an empty access_token")

    logger.info("Got IETT access token (expires_in=%s)", token.expires_in)
    return AuthContext.bearer(token.access_token, BASE_HEADERS)
