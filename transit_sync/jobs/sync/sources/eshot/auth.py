import logging

import httpx
from pydantic import ValidationError

from transit_sync.core.errors import AuthError
from transit_sync.jobs.sync.types import AuthContext

from .config import EshotConfig
from .schemas import EshotTokenResponse

logger = logging.getLogger(__name__)

BASE_HEADERS = {"Content-Type": "application/json; charset=UTF-8"}


def _token(r: httpx.Response, step: str) -> str:
    try:
        r.raise_for_status()
        token = EshotTokenResponse.model_validate(r.json()).data.token
    except (httpx.HTTPError, ValueError, ValidationError) as e:
        raise AuthError(f"ESHOT {step} failed: {e!r}") from e
    if not token:
        raise AuthError(f"ESHOT {step} returned an empty token")
    return token


def acquire(cfg: EshotConfig, client: httpx.Client) -> AuthContext:
    """
    Two hops: log in with the public account, then trade that token for an
    anonymous-user token. Only the second token is accepted by the line endpoints.
    """
    logger.info("Getting ESHOT login token")
    try:
        login = client.post(
            cfg.login_url,
            json={"userName": cfg.username, "password": cfg.password},
            headers=BASE_HEADERS,
        )
    except httpx.HTTPError as e:
        raise AuthError(f"ESHOT login failed: {e!r}") from e
    login_ctx = AuthContext.bearer(_token(login, "login"), BASE_HEADERS)

    logger.info("Getting ESHOT anonymous user using login token")
    try:
        anon = client.get(cfg.anonymous_user_url, headers=login_ctx.as_headers())
    except httpx.HTTPError as e:
        raise AuthError(f"ESHOT anonymous user request failed: {e!r}") from e

    logger.info("Got ESHOT tokens")
    return AuthContext.bearer(_token(anon, "anonymous user"), BASE_HEADERS)
