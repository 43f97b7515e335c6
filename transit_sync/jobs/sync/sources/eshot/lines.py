import logging

import httpx

from transit_sync.jobs.sync.sources.http import get_json
from transit_sync.jobs.sync.sources.records import expect_list, parse_records
from transit_sync.jobs.sync.types import LineRecord, RouteRecord
from transit_sync.jobs.sync.utils.route_code import make_route_code

from .config import EshotConfig
from .schemas import EshotLine

logger = logging.getLogger(__name__)

CITY = "izmir"


def fetch_lines_paginated(cfg: EshotConfig, client: httpx.Client) -> list[EshotLine]:
    """Page through the CKAN datastore until offset passes the reported total."""
    lines: list[EshotLine] = []
    offset = 0
    page = 0

    while True:
        page += 1
        logger.info("Getting ESHOT lines page %d offset %d", page, offset)
        res = get_json(
            cfg.http,
            client,
            cfg.datastore_url,
            params={"resource_id": cfg.lines_resource_id, "offset": offset, "limit": cfg.page_size},
        )
        result = (res or {}).get("result", {}) or {}
        records = expect_list(result.get("records"), context=f"datastore_search offset={offset}")
        lines.extend(parse_records(EshotLine, records, context=f"offset={offset}"))

        total = int(result.get("total") or 0)
        offset += cfg.page_size
        if offset > total:
            break

    logger.info("ESHOT lines fetched: %d over %d pages", len(lines), page)
    return lines


def to_line_record(line: EshotLine) -> LineRecord:
    return LineRecord(code=line.line_code.strip(), title=line.line_name.strip(), city=CITY)


def default_routes(line: EshotLine, agency_id: int) -> list[RouteRecord]:
    """The lines feed has no per-direction records, so every line gets an outbound and an inbound route."""
    code = line.line_code.strip()
    start = (line.line_start or "").strip()
    end = (line.line_end or "").strip()

    def long_name(a: str, b: str) -> str:
        return f"{a} - {b}" if a and b else line.line_name.strip()

    return [
        RouteRecord(
            route_code=make_route_code(code, "G"),
            city=CITY,
            route_short_name=code,
            route_long_name=long_name(start, end),
            agency_id=agency_id,
        ),
        RouteRecord(
            route_code=make_route_code(code, "D"),
            city=CITY,
            route_short_name=code,
            route_long_name=long_name(end, start),
            agency_id=agency_id,
        ),
    ]
