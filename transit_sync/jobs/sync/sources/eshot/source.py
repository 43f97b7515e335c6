import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from transit_sync.jobs.sync.loader import (
    load_lines,
    upsert_line_stops,
    upsert_lines,
    upsert_route_paths,
    upsert_routes,
    upsert_stops,
    upsert_timetables,
)
from transit_sync.jobs.sync.sources.base import BaseSource
from transit_sync.jobs.sync.sources.http import configure_logging_if_needed, make_client, throttle
from transit_sync.jobs.sync.types import AuthContext, StageResult

from . import auth as eshot_auth
from .config import EshotConfig, load_config
from .details import detail_to_rows, fetch_line_detail
from .lines import CITY, default_routes, fetch_lines_paginated, to_line_record
from .search import SearchCache, resolve_line

logger = logging.getLogger(__name__)


class EshotSource(BaseSource):
    """
    ESHOT (Izmir) sync:
      - lines from the CKAN datastore, plus two synthesized routes per line
      - per line: free-text search -> internal id -> one detail call carrying
        stations, WKT tracks and bitmask timetables for every direction

    The detail call feeds stops, line stops, route paths and timetables at once,
    so the routes, route_paths and timetable stages are not applicable here.
    """

    name = "eshot"
    city = CITY
    auth_stages = frozenset({"stops"})

    def __init__(self, cfg: Optional[EshotConfig] = None, transport: Optional[httpx.BaseTransport] = None):
        configure_logging_if_needed()
        self.cfg = cfg or load_config()
        self.transport = transport

        logger.info(
            "ESHOT configured datastore=%s page_size=%d search_delay=%.1f line_delay=%.1f retries=%d",
            self.cfg.datastore_url,
            self.cfg.page_size,
            self.cfg.search_delay,
            self.cfg.line_delay,
            self.cfg.http.retries,
        )

    def _client(self) -> httpx.Client:
        return make_client(self.cfg.http, transport=self.transport)

    def get_credentials(self) -> AuthContext:
        with self._client() as client:
            return eshot_auth.acquire(self.cfg, client)

    def sync_lines(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        with self._client() as client:
            lines = fetch_lines_paginated(self.cfg, client)

        line_stats = upsert_lines(db, [to_line_record(ln) for ln in lines])
        routes = [r for ln in lines for r in default_routes(ln, self.cfg.agency_id)]
        route_stats = upsert_routes(db, routes)

        logger.info("ESHOT lines load complete: lines=%s routes=%s", line_stats, route_stats)
        return StageResult(
            "lines",
            stats={
                "fetched": len(lines),
                "lines_written": line_stats["written"],
                "routes_written": route_stats["written"],
            },
        )

    def sync_routes(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        return StageResult.not_applicable("routes", "eshot routes are synthesized by the lines stage")

    def sync_stops(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        lines = load_lines(db, self.city)
        cache: SearchCache = {}
        stats = {
            "lines_total": len(lines),
            "lines_unresolved": 0,
            "directions_skipped": 0,
            "times_dropped": 0,
            "stops_written": 0,
            "line_stops_written": 0,
            "route_paths_written": 0,
            "timetables_written": 0,
        }

        with self._client() as client:
            for idx, line in enumerate(lines, start=1):
                every = self.cfg.progress_every
                if every and (idx == 1 or idx % every == 0 or idx == len(lines)):
                    logger.info("ESHOT stops progress %d/%d %s", idx, len(lines), stats)

                hit, cache = resolve_line(self.cfg, client, auth, line.code, cache)
                if hit is None:
                    stats["lines_unresolved"] += 1
                    logger.info("Line %s: no search result, skipping", line.code)
                    throttle(self.cfg.search_delay)
                    continue

                directions = fetch_line_detail(self.cfg, client, auth, hit.id)
                rows = detail_to_rows(line.code, directions, self.city)
                stats["directions_skipped"] += rows.skipped_directions
                stats["times_dropped"] += rows.dropped_times

                if rows.stops:
                    stats["stops_written"] += upsert_stops(db, rows.stops)["written"]
                    stats["line_stops_written"] += upsert_line_stops(db, rows.line_stops)["written"]
                if rows.route_paths:
                    stats["route_paths_written"] += upsert_route_paths(db, rows.route_paths)["written"]
                if rows.timetables:
                    stats["timetables_written"] += upsert_timetables(db, rows.timetables)["written"]

                throttle(self.cfg.line_delay)

        return StageResult("stops", stats=stats)

    def sync_route_paths(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        return StageResult.not_applicable("route_paths", "eshot route paths are written by the stops stage")

    def sync_timetable(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        return StageResult.not_applicable("timetable", "eshot timetables are written by the stops stage")
