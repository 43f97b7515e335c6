from typing import Callable, Hashable, Iterable, TypeVar

from transit_sync.jobs.sync.types import LineStopRecord, StationRecord, StopRecord

T = TypeVar("T")


def first_wins(items: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Keep the first item per key, preserving input order."""
    seen: set = set()
    out: list[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out


def dedupe_stations(stations: Iterable[StationRecord]) -> list[StationRecord]:
    return first_wins(stations, key=lambda s: s.stop_code)


def stations_to_rows(
    stations: Iterable[StationRecord],
    *,
    line_code: str,
    route_code: str,
    city: str,
) -> tuple[list[StopRecord], list[LineStopRecord]]:
    """
    Build Stop and LineStop rows for one route-direction station list.
    A stop visited twice keeps its first position; stop_order is 1-based after dedup.
    """
    stops: list[StopRecord] = []
    line_stops: list[LineStopRecord] = []

    for order, s in enumerate(dedupe_stations(stations), start=1):
        stops.append(
            StopRecord(
                stop_code=s.stop_code,
                stop_name=s.stop_name,
                x_coord=s.x_coord,
                y_coord=s.y_coord,
                province=s.province,
                city=city,
            )
        )
        line_stops.append(
            LineStopRecord(
                line_code=line_code,
                stop_code=s.stop_code,
                stop_order=order,
                route_code=route_code,
                city=city,
            )
        )

    return stops, line_stops
