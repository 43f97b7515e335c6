import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from transit_sync.jobs.sync.normalize.daytype import TimetableBuilder, eshot_weekdays
from transit_sync.jobs.sync.normalize.dedup import stations_to_rows
from transit_sync.jobs.sync.normalize.geometry import parse_wkt_tracks
from transit_sync.jobs.sync.sources.http import get_json
from transit_sync.jobs.sync.sources.records import expect_list, parse_records
from transit_sync.jobs.sync.types import (
    AuthContext,
    LineStopRecord,
    RoutePathRecord,
    StationRecord,
    StopRecord,
    TimetableRecord,
)
from transit_sync.jobs.sync.utils.route_code import make_route_code

from .config import EshotConfig
from .schemas import EshotDirection, EshotStation, EshotTime

logger = logging.getLogger(__name__)

# ESHOT direction ids
DIRECTIONS = {1: "G", 2: "D", 3: "R"}


@dataclass
class LineDetailRows:
    stops: list[StopRecord] = field(default_factory=list)
    line_stops: list[LineStopRecord] = field(default_factory=list)
    route_paths: list[RoutePathRecord] = field(default_factory=list)
    timetables: list[TimetableRecord] = field(default_factory=list)
    skipped_directions: int = 0
    dropped_times: int = 0


def fetch_line_detail(
    cfg: EshotConfig,
    client: httpx.Client,
    auth: Optional[AuthContext],
    line_id: int,
) -> list[EshotDirection]:
    res = get_json(
        cfg.http,
        client,
        cfg.line_detail_url,
        params={"lineId": line_id},
        headers=auth.as_headers() if auth else {},
    )
    data = expect_list((res or {}).get("data"), context=f"GetLineDetail {line_id}")
    return parse_records(EshotDirection, data, context=f"line_id={line_id}")


def _station(st: EshotStation) -> Optional[StationRecord]:
    code = st.code.strip()
    if not code.isdigit():
        logger.debug("Dropping station %r: non-numeric code %r", st.name, st.code)
        return None
    return StationRecord(stop_code=int(code), stop_name=st.name.strip(), x_coord=st.lng, y_coord=st.lat)


def detail_to_rows(line_code: str, directions: list[EshotDirection], city: str) -> LineDetailRows:
    out = LineDetailRows()
    timetable = TimetableBuilder(city)

    for d in directions:
        dir_code = DIRECTIONS.get(d.direction)
        if dir_code is None:
            out.skipped_directions += 1
            logger.info("Line %s: unknown direction %r, skipping", line_code, d.direction)
            continue
        route_code = make_route_code(line_code, dir_code)

        stations = [
            s for s in (_station(x) for x in parse_records(EshotStation, d.stations, context=route_code)) if s
        ]
        if stations:
            stops, line_stops = stations_to_rows(stations, line_code=line_code, route_code=route_code, city=city)
            out.stops.extend(stops)
            out.line_stops.extend(line_stops)
        else:
            out.skipped_directions += 1
            logger.info("Route %s has no stations, skipping stops", route_code)

        points = parse_wkt_tracks(d.tracks)
        if points:
            out.route_paths.append(RoutePathRecord(route_code=route_code, city=city, points=tuple(points)))

        for t in parse_records(EshotTime, d.times, context=route_code):
            timetable.add(route_code, t.time, eshot_weekdays(t.day))

    out.timetables = timetable.build()
    out.dropped_times = timetable.dropped
    return out
