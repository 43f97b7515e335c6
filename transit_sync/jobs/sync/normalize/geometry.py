"""
Route geometry normalisation.

Two upstream shapes converge on one ordered list of Point(lat, lng):

  - WKT text: "LINESTRING (x y, x y)|LINESTRING (x y, ...)" where x = longitude,
    y = latitude and "|" separates disjoint segments
  - GeoJSON geometry: MultiLineString coordinates [[[lng, lat], ...], ...]
    (a plain LineString [[lng, lat], ...] is accepted too)

Malformed coordinate pairs are dropped, never fatal.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from transit_sync.jobs.sync.types import Point

logger = logging.getLogger(__name__)

SEGMENT_SEPARATOR = "|"


def _parse_pair(raw: str) -> Optional[Point]:
    tokens = raw.split()
    if len(tokens) != 2:
        return None
    try:
        x, y = float(tokens[0]), float(tokens[1])
    except ValueError:
        return None
    return Point(lat=y, lng=x)


def parse_wkt_linestrings(text: Optional[str]) -> list[Point]:
    points: list[Point] = []
    if not text:
        return points

    for segment in text.split(SEGMENT_SEPARATOR):
        start = segment.find("(")
        end = segment.rfind(")")
        if start == -1 or end <= start:
            if segment.strip():
                logger.debug("Dropping WKT segment without body: %r", segment[:80])
            continue

        for raw in segment[start + 1:end].split(","):
            p = _parse_pair(raw)
            if p is None:
                logger.debug("Dropping malformed coordinate pair %r", raw)
                continue
            points.append(p)

    return points


def parse_wkt_tracks(tracks: Iterable[Optional[str]]) -> list[Point]:
    """Concatenate several WKT track strings in encounter order."""
    out: list[Point] = []
    for t in tracks:
        out.extend(parse_wkt_linestrings(t))
    return out


def _pair_to_point(pair) -> Optional[Point]:
    if not isinstance(pair, (list, tuple)) or len(pair) < 2:
        return None
    try:
        lng, lat = float(pair[0]), float(pair[1])
    except (TypeError, ValueError):
        return None
    return Point(lat=lat, lng=lng)


def parse_geojson_multilinestring(coordinates) -> list[Point]:
    points: list[Point] = []
    for line in coordinates or []:
        for pair in line or []:
            p = _pair_to_point(pair)
            if p is None:
                logger.debug("Dropping malformed GeoJSON position %r", pair)
                continue
            points.append(p)
    return points


def parse_geojson_geometry(geometry: Optional[dict]) -> list[Point]:
    if not geometry:
        return []
    geo_type = geometry.get("type")
    coords = geometry.get("coordinates") or []

    if geo_type == "MultiLineString":
        return parse_geojson_multilinestring(coords)
    if geo_type == "LineString":
        return parse_geojson_multilinestring([coords])

    logger.debug("Unsupported geometry type %r", geo_type)
    return []


def points_to_json(points: Iterable[Point]) -> list[dict]:
    return [p.as_dict() for p in points]
