import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

# transient upstream failures worth another attempt; 429 is not retried, the fixed
# per-line delays are the only rate limiting we do
RETRY_STATUSES = {502, 503, 504}


@dataclass(frozen=True)
class HttpSettings:
    connect_timeout: float
    read_timeout: float
    write_timeout: float
    pool_timeout: float
    retries: int
    backoff_base: float


def mask_bearer(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    parts = value.split(" ", 1)
    if len(parts) != 2:
        return "****"
    scheme, token = parts
    if len(token) <= 6:
        return f"{scheme} ****"
    return f"{scheme} ****{token[-4:]}"


def configure_logging_if_needed() -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def log_request(request: httpx.Request) -> None:
    logger.debug("HTTP %s %s", request.method, request.url)
    logger.debug("HTTP Authorization: %s", mask_bearer(request.headers.get("authorization")))


def make_client(
    cfg: HttpSettings,
    *,
    headers: Optional[Mapping[str, str]] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    timeout = httpx.Timeout(
        connect=cfg.connect_timeout,
        read=cfg.read_timeout,
        write=cfg.write_timeout,
        pool=cfg.pool_timeout,
    )
    return httpx.Client(
        timeout=timeout,
        headers=dict(headers or {}),
        event_hooks={"request": [log_request]},
        transport=transport,
    )


def throttle(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)


def sleep_backoff(cfg: HttpSettings, *, attempt: int, url: str) -> None:
    sleep_s = cfg.backoff_base * (2 ** (attempt - 1))
    sleep_s += random.uniform(0, 0.5)
    logger.info("Sleeping %.2fs before retrying %s", sleep_s, url)
    time.sleep(sleep_s)


def send_with_retry(
    cfg: HttpSettings,
    client: httpx.Client,
    method: str,
    url: str,
    **kwargs,
) -> httpx.Response:
    """
    Send a request, retrying timeouts and RETRY_STATUSES with backoff.
    Any other non-2xx raises immediately; the last error is raised once attempts run out.
    """
    last_err: Exception | None = None
    attempts = max(1, cfg.retries)

    for attempt in range(1, attempts + 1):
        t0 = time.perf_counter()
        try:
            r = client.request(method, url, **kwargs)
            elapsed = time.perf_counter() - t0

            if r.status_code in RETRY_STATUSES:
                logger.warning(
                    "Retryable HTTP %d (attempt %d/%d) %s %s after %.2fs body_snippet=%r",
                    r.status_code,
                    attempt,
                    attempts,
                    method,
                    url,
                    elapsed,
                    (r.text or "")[:300],
                )
                raise httpx.HTTPStatusError("Retryable status", request=r.request, response=r)

            if elapsed > 10:
                logger.info("%s %s completed in %.2fs status=%d (slow)", method, url, elapsed, r.status_code)
            else:
                logger.debug("%s %s completed in %.2fs status=%d", method, url, elapsed, r.status_code)

            r.raise_for_status()
            return r

        except (httpx.ReadTimeout, httpx.ConnectTimeout) as e:
            last_err = e
            logger.warning(
                "%s (attempt %d/%d) %s %s after %.2fs",
                e.__class__.__name__,
                attempt,
                attempts,
                method,
                url,
                time.perf_counter() - t0,
            )

        except httpx.HTTPStatusError as e:
            last_err = e
            status = e.response.status_code if e.response is not None else None
            if status not in RETRY_STATUSES:
                logger.error(
                    "Non-retryable HTTP %s %s %s body_snippet=%r",
                    status,
                    method,
                    url,
                    (e.response.text or "")[:300] if e.response is not None else None,
                )
                raise

        if attempt < attempts:
            sleep_backoff(cfg, attempt=attempt, url=url)

    raise last_err  # type: ignore


def get_json(cfg: HttpSettings, client: httpx.Client, url: str, **kwargs):
    return send_with_retry(cfg, client, "GET", url, **kwargs).json()


def post_json(cfg: HttpSettings, client: httpx.Client, url: str, payload: dict, **kwargs):
    return send_with_retry(cfg, client, "POST", url, json=payload, **kwargs).json()
