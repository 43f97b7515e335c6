import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from transit_sync.jobs.sync.loader import (
    existing_route_path_codes,
    load_lines,
    load_routes,
    upsert_line_stops,
    upsert_lines,
    upsert_route_paths,
    upsert_routes,
    upsert_stops,
    upsert_timetables,
)
from transit_sync.jobs.sync.normalize.daytype import TimetableBuilder, iett_weekdays
from transit_sync.jobs.sync.normalize.dedup import stations_to_rows
from transit_sync.jobs.sync.sources.base import BaseSource
from transit_sync.jobs.sync.sources.http import configure_logging_if_needed, make_client, post_json, throttle
from transit_sync.jobs.sync.sources.records import expect_list, parse_records
from transit_sync.jobs.sync.types import (
    AuthContext,
    LineRecord,
    RoutePathRecord,
    RouteRecord,
    StageResult,
    StationRecord,
)
from transit_sync.jobs.sync.utils.route_code import make_route_code

from . import auth as iett_auth
from .config import IettConfig, load_config
from .paths import choose_strategy
from .schemas import IettLine, IettRoute, IettScheduledTime, IettStop
from .soap import call_soap_json

logger = logging.getLogger(__name__)

ROUTE_PATH_BATCH = 100


class IettSource(BaseSource):
    """
    IETT (Istanbul) sync:
      - lines via SOAP GetHat_json (XML envelope around a JSON string)
      - routes/stops via the ntcapi service endpoint, one call per line and direction
      - route paths from the cached GeoJSON snapshot, or per route from the service endpoint
      - timetable via SOAP GetPlanlananSeferSaati_json, one call per line
    """

    name = "iett"
    city = "istanbul"
    auth_stages = frozenset({"routes", "stops", "route_paths"})

    def __init__(self, cfg: Optional[IettConfig] = None, transport: Optional[httpx.BaseTransport] = None):
        configure_logging_if_needed()
        self.cfg = cfg or load_config()
        self.transport = transport

        logger.info(
            "IETT configured service_url=%s soap_url=%s line_delay=%.1f retries=%d path_cache=%s snapshot_url=%s",
            self.cfg.service_url,
            self.cfg.soap_url,
            self.cfg.line_delay,
            self.cfg.http.retries,
            self.cfg.path_cache,
            self.cfg.path_snapshot_url or "-",
        )

    def _client(self) -> httpx.Client:
        return make_client(self.cfg.http, transport=self.transport)

    def _service(self, client: httpx.Client, auth: Optional[AuthContext], alias: str, data: dict) -> list:
        payload = {"alias": alias, "data": data}
        headers = auth.as_headers() if auth else {}
        res = post_json(self.cfg.http, client, self.cfg.service_url, payload, headers=headers)
        return expect_list(res, context=f"{alias} {data}")

    def _log_progress(self, stage: str, idx: int, total: int, **counts) -> None:
        every = self.cfg.progress_every
        if every and (idx == 1 or idx % every == 0 or idx == total):
            logger.info(
                "IETT %s progress %d/%d %s",
                stage,
                idx,
                total,
                " ".join(f"{k}={v}" for k, v in counts.items()),
            )

    def get_credentials(self) -> AuthContext:
        with self._client() as client:
            return iett_auth.acquire(self.cfg, client)

    def sync_lines(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        logger.info("Fetching IETT lines over SOAP ...")
        with self._client() as client:
            data = call_soap_json(self.cfg.http, client, self.cfg.soap_url, "GetHat_json", {"HatKodu": ""})

        data = expect_list(data, context="GetHat_json")
        lines = parse_records(IettLine, data, context="GetHat_json")
        records = [LineRecord(code=ln.line_code.strip(), title=ln.line_name.strip(), city=self.city) for ln in lines]

        logger.info("Loading %d lines into DB...", len(records))
        stats = upsert_lines(db, records)
        logger.info("Lines load complete: %s", stats)
        return StageResult("lines", stats={"fetched": len(data), **stats})

    def sync_routes(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        lines = load_lines(db, self.city)
        routes_written = 0
        empty = 0

        with self._client() as client:
            for idx, line in enumerate(lines, start=1):
                self._log_progress("routes", idx, len(lines), written=routes_written, empty=empty)

                records: list[RouteRecord] = []
                for direction in self.cfg.directions:
                    rows = self._service(
                        client,
                        auth,
                        self.cfg.routes_alias,
                        {"HATYONETIM.HAT.HAT_KODU": line.code, "HATYONETIM.GUZERGAH.YON": direction},
                    )
                    for r in parse_records(IettRoute, rows, context=f"{line.code}/{direction}"):
                        records.append(
                            RouteRecord(
                                route_code=r.route_code,
                                city=self.city,
                                route_short_name=line.code,
                                route_long_name=r.route_name or line.title,
                                route_desc=r.description,
                                agency_id=self.cfg.agency_id,
                            )
                        )

                if records:
                    routes_written += upsert_routes(db, records)["written"]
                else:
                    empty += 1
                    logger.info("Line %s has no routes, skipping", line.code)

                throttle(self.cfg.line_delay)

        return StageResult("routes", stats={"lines_total": len(lines), "lines_empty": empty, "written": routes_written})

    def sync_stops(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        lines = load_lines(db, self.city)
        stops_written = 0
        line_stops_written = 0
        skipped = 0

        with self._client() as client:
            for idx, line in enumerate(lines, start=1):
                self._log_progress("stops", idx, len(lines), stops=stops_written, skipped=skipped)

                stops, line_stops = [], []
                for direction in self.cfg.directions:
                    rows = self._service(
                        client,
                        auth,
                        self.cfg.stops_alias,
                        {"HATYONETIM.HAT.HAT_KODU": line.code, "HATYONETIM.GUZERGAH.YON": direction},
                    )
                    parsed = parse_records(IettStop, rows, context=f"{line.code}/{direction}")
                    if not parsed:
                        skipped += 1
                        logger.info("Line %s direction %s has no stops, skipping", line.code, direction)
                        continue

                    # one response may hold several route variants of this direction
                    by_route: dict[str, list[StationRecord]] = {}
                    for s in parsed:
                        route_code = s.route_code or make_route_code(line.code, direction)
                        by_route.setdefault(route_code, []).append(
                            StationRecord(
                                stop_code=s.stop_code,
                                stop_name=s.stop_name,
                                x_coord=s.x,
                                y_coord=s.y,
                                province=s.district,
                            )
                        )

                    for route_code, stations in by_route.items():
                        s_rows, ls_rows = stations_to_rows(
                            stations, line_code=line.code, route_code=route_code, city=self.city
                        )
                        stops.extend(s_rows)
                        line_stops.extend(ls_rows)

                if stops:
                    stops_written += upsert_stops(db, stops)["written"]
                    line_stops_written += upsert_line_stops(db, line_stops)["written"]

                throttle(self.cfg.line_delay)

        return StageResult(
            "stops",
            stats={
                "lines_total": len(lines),
                "directions_skipped": skipped,
                "stops_written": stops_written,
                "line_stops_written": line_stops_written,
            },
        )

    def sync_route_paths(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        routes = load_routes(db, self.city)
        done = existing_route_path_codes(db, self.city)
        todo = [r for r in routes if r.route_code not in done]
        logger.info("Route paths: %d routes, %d already stored, %d to fetch", len(routes), len(done), len(todo))
        if not todo:
            return StageResult("route_paths", stats={"routes_total": len(routes), "already_stored": len(routes)})

        written = 0
        missing = 0
        batch: list[RoutePathRecord] = []

        with self._client() as client:
            strategy = choose_strategy(self.cfg, client, auth)
            logger.info("Route path strategy: %s", strategy.name)

            for idx, route in enumerate(todo, start=1):
                self._log_progress("route_paths", idx, len(todo), written=written, missing=missing)

                points = strategy.points_for(route.route_code)
                if strategy.name == "live":
                    throttle(self.cfg.line_delay)

                if not points:
                    missing += 1
                    logger.info("Route %s has no geometry, skipping", route.route_code)
                    continue

                batch.append(RoutePathRecord(route_code=route.route_code, city=self.city, points=tuple(points)))
                if len(batch) >= ROUTE_PATH_BATCH:
                    written += upsert_route_paths(db, batch)["written"]
                    batch = []

        if batch:
            written += upsert_route_paths(db, batch)["written"]

        return StageResult(
            "route_paths",
            stats={
                "strategy": strategy.name,
                "routes_total": len(routes),
                "already_stored": len(routes) - len(todo),
                "missing": missing,
                "written": written,
            },
        )

    def sync_timetable(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        lines = load_lines(db, self.city)
        written = 0
        dropped = 0
        empty = 0

        with self._client() as client:
            for idx, line in enumerate(lines, start=1):
                self._log_progress("timetable", idx, len(lines), written=written, dropped=dropped)

                data = call_soap_json(
                    self.cfg.http, client, self.cfg.soap_url, "GetPlanlananSeferSaati_json", {"HatKodu": line.code}
                )
                rows = parse_records(
                    IettScheduledTime,
                    expect_list(data, context=f"GetPlanlananSeferSaati_json {line.code}"),
                    context=line.code,
                )

                builder = TimetableBuilder(self.city)
                for r in rows:
                    builder.add(r.route_code, r.time, iett_weekdays(r.day_type))
                dropped += builder.dropped

                timetables = builder.build()
                if timetables:
                    written += upsert_timetables(db, timetables)["written"]
                else:
                    empty += 1
                    logger.info("Line %s has no timetable, skipping", line.code)

                throttle(self.cfg.line_delay)

        return StageResult(
            "timetable",
            stats={"lines_total": len(lines), "lines_empty": empty, "times_dropped": dropped, "written": written},
        )
