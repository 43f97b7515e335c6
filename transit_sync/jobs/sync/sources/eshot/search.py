import logging
from typing import Optional

import httpx

from transit_sync.jobs.sync.sources.http import get_json
from transit_sync.jobs.sync.sources.records import expect_list, parse_records
from transit_sync.jobs.sync.types import AuthContext

from .config import EshotConfig
from .schemas import EshotSearchResult

logger = logging.getLogger(__name__)

# line code -> search hit (None when no hit carries that exact code)
SearchCache = dict[str, Optional[EshotSearchResult]]


def pick_hit(line_code: str, hits: list[EshotSearchResult]) -> Optional[EshotSearchResult]:
    for h in hits:
        if h.code.strip() == line_code:
            return h
    if hits:
        logger.info("Line %s: %d search hits, none with that code", line_code, len(hits))
    return None


def resolve_line(
    cfg: EshotConfig,
    client: httpx.Client,
    auth: Optional[AuthContext],
    line_code: str,
    cache: SearchCache,
) -> tuple[Optional[EshotSearchResult], SearchCache]:
    """Map a line code to its internal ESHOT id, consulting the cache before the network."""
    if line_code in cache:
        return cache[line_code], cache

    res = get_json(
        cfg.http,
        client,
        cfg.search_url,
        params={"text": line_code},
        headers=auth.as_headers() if auth else {},
    )
    data = expect_list((res or {}).get("data"), context=f"SearchLine {line_code}")
    hits = parse_records(EshotSearchResult, data, context=line_code)
    hit = pick_hit(line_code, hits)

    updated = {**cache, line_code: hit}
    return hit, updated
