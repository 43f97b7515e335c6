"""
Route geometry strategies for IETT.

A strategy is picked once when the route-paths stage starts:
  - GeoJsonPathStrategy when the cached snapshot exists, or can be downloaded
  - LivePathStrategy (one service call per route) otherwise, including when the download fails
Both answer points_for(route_code) -> list[Point].
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import httpx

from transit_sync.jobs.sync.normalize.geometry import parse_geojson_geometry, parse_wkt_tracks
from transit_sync.jobs.sync.sources.http import post_json, send_with_retry
from transit_sync.jobs.sync.sources.records import expect_list, parse_records
from transit_sync.jobs.sync.types import AuthContext, Point

from .config import IettConfig
from .schemas import IettRoutePath

logger = logging.getLogger(__name__)


class GeoJsonPathStrategy:
    name = "geojson"

    def __init__(self, path: Path, feature_key: str):
        self.path = path
        self.feature_key = feature_key
        self._index: dict[str, list[Point]] = {}
        self._load()

    def _load(self) -> None:
        with open(self.path, "r", encoding="utf-8") as fh:
            data = json.load(fh)

        features = data.get("features", []) if isinstance(data, dict) else []
        for feature in features:
            props = feature.get("properties") or {}
            code = props.get(self.feature_key)
            if not code:
                continue
            points = parse_geojson_geometry(feature.get("geometry"))
            # fragments of one route are concatenated in file order
            self._index.setdefault(str(code), []).extend(points)

        logger.info("Indexed %d routes from %s", len(self._index), self.path)

    def points_for(self, route_code: str) -> list[Point]:
        return self._index.get(route_code, [])


class LivePathStrategy:
    name = "live"

    def __init__(self, cfg: IettConfig, client: httpx.Client, auth: Optional[AuthContext]):
        self.cfg = cfg
        self.client = client
        self.headers = auth.as_headers() if auth else {}

    def points_for(self, route_code: str) -> list[Point]:
        payload = {
            "alias": self.cfg.route_path_alias,
            "data": {"HATYONETIM.GUZERGAH.GUZERGAH_KODU": route_code},
        }
        data = post_json(self.cfg.http, self.client, self.cfg.service_url, payload, headers=self.headers)
        rows = parse_records(
            IettRoutePath, expect_list(data, context=f"{self.cfg.route_path_alias} {route_code}"), context=route_code
        )
        return parse_wkt_tracks(r.geoloc for r in rows if r.route_code == route_code)


def ensure_snapshot(cfg: IettConfig, client: httpx.Client) -> Optional[Path]:
    """Return the cached snapshot path, downloading it once when a snapshot URL is configured."""
    path = Path(cfg.path_cache)
    if path.is_file():
        logger.info("Using cached route geometry snapshot %s", path)
        return path

    if not cfg.path_snapshot_url:
        return None

    path.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Downloading route geometry snapshot from %s", cfg.path_snapshot_url)
    r = send_with_retry(cfg.http, client, "GET", cfg.path_snapshot_url, timeout=cfg.snapshot_read_timeout)

    tmp = path.with_suffix(path.suffix + ".part")
    tmp.write_bytes(r.content)
    tmp.replace(path)
    logger.info("Saved %d bytes to %s", len(r.content), path)
    return path


def choose_strategy(cfg: IettConfig, client: httpx.Client, auth: Optional[AuthContext]):
    try:
        snapshot = ensure_snapshot(cfg, client)
    except httpx.HTTPError as e:
        logger.warning("Route geometry snapshot download failed (%s); falling back to live route paths", e)
        snapshot = None
    if snapshot is not None:
        return GeoJsonPathStrategy(snapshot, cfg.path_feature_key)
    return LivePathStrategy(cfg, client, auth)
