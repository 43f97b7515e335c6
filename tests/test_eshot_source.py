import httpx
import pytest
from sqlalchemy import select

from transit_sync.core.errors import AuthError, UpstreamDecodeError
from transit_sync.jobs.sync.loader import upsert_lines
from transit_sync.jobs.sync.normalize.daytype import SATURDAY_BITS, SUNDAY_BITS, WEEKDAY_BITS
from transit_sync.jobs.sync.sources.eshot.details import detail_to_rows
from transit_sync.jobs.sync.sources.eshot.lines import fetch_lines_paginated
from transit_sync.jobs.sync.sources.eshot.schemas import EshotDirection
from transit_sync.jobs.sync.sources.eshot.search import pick_hit, resolve_line
from transit_sync.jobs.sync.sources.eshot.source import EshotSource
from transit_sync.jobs.sync.sources.http import make_client
from transit_sync.jobs.sync.types import AuthContext, LineRecord
from transit_sync.models.line_stops import LineStop
from transit_sync.models.lines import Line
from transit_sync.models.route_paths import RoutePath
from transit_sync.models.routes import Route
from transit_sync.models.stops import Stop
from transit_sync.models.timetables import Timetable

AUTH = AuthContext.bearer("anon-token")


def datastore_handler(total: int, calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        calls.append(offset)
        records = [
            {"HAT_NO": n, "HAT_ADI": f"Line {n}", "HAT_BASLANGIC": "A", "HAT_BITIS": "B"}
            for n in range(offset + 1, min(offset + limit, total) + 1)
        ]
        return httpx.Response(200, json={"success": True, "result": {"records": records, "total": total}})

    return handler


def test_pagination_stops_once_offset_passes_total(eshot_cfg):
    calls = []
    transport = httpx.MockTransport(datastore_handler(250, calls))
    with make_client(eshot_cfg.http, transport=transport) as client:
        lines = fetch_lines_paginated(eshot_cfg, client)

    assert calls == [0, 100, 200]
    assert len(lines) == 250
    assert lines[0].line_code == "1"


def test_sync_lines_writes_lines_and_two_routes_each(db, eshot_cfg):
    calls = []
    source = EshotSource(cfg=eshot_cfg, transport=httpx.MockTransport(datastore_handler(3, calls)))

    result = source.sync_lines(db)

    assert result.stats == {"fetched": 3, "lines_written": 3, "routes_written": 6}
    assert {ln.city for ln in db.scalars(select(Line))} == {"izmir"}
    routes = db.scalars(select(Route).where(Route.route_short_name == "1").order_by(Route.route_code)).all()
    assert [(r.route_code, r.route_long_name, r.agency_id) for r in routes] == [
        ("1_D_D0", "B - A", 2),
        ("1_G_D0", "A - B", 2),
    ]


def test_routes_and_later_stages_are_not_applicable(db, eshot_cfg):
    source = EshotSource(cfg=eshot_cfg, transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    for result in (source.sync_routes(db), source.sync_route_paths(db), source.sync_timetable(db)):
        assert not result.applicable
        assert result.reason


def test_two_hop_credentials(eshot_cfg):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.headers.get("authorization")))
        if request.url.path.endswith("/Login"):
            return httpx.Response(200, json={"data": {"Item1": "login-token", "Item2": "x"}})
        if request.url.path.endswith("/getAnonymousUser"):
            return httpx.Response(200, json={"data": {"Item1": "anon-token"}})
        return httpx.Response(404)

    source = EshotSource(cfg=eshot_cfg, transport=httpx.MockTransport(handler))
    ctx = source.get_credentials()

    assert ctx.headers["Authorization"] == "Bearer anon-token"
    assert seen == [
        ("POST", "/api/Transportation/Login", None),
        ("GET", "/api/TransportationUser/getAnonymousUser", "Bearer login-token"),
    ]


def test_rejected_anonymous_hop_is_an_auth_error(eshot_cfg):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/Login"):
            return httpx.Response(200, json={"data": {"Item1": "login-token"}})
        return httpx.Response(401)

    source = EshotSource(cfg=eshot_cfg, transport=httpx.MockTransport(handler))
    with pytest.raises(AuthError):
        source.get_credentials()


def test_search_cache_avoids_second_lookup(eshot_cfg):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.params["text"])
        return httpx.Response(200, json={"data": [{"id": 77, "name": "Line 5", "code": "5"}]})

    with make_client(eshot_cfg.http, transport=httpx.MockTransport(handler)) as client:
        hit, cache = resolve_line(eshot_cfg, client, AUTH, "5", {})
        again, cache2 = resolve_line(eshot_cfg, client, AUTH, "5", cache)

    assert hit.id == again.id == 77
    assert calls == ["5"]
    assert cache2 == cache


def test_search_cache_answers_without_network(eshot_cfg):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("network used")

    with make_client(eshot_cfg.http, transport=httpx.MockTransport(handler)) as client:
        hit, _ = resolve_line(eshot_cfg, client, AUTH, "9", {"9": None})
    assert hit is None


def test_pick_hit_needs_exact_code():
    from transit_sync.jobs.sync.sources.eshot.schemas import EshotSearchResult

    hits = [EshotSearchResult(id=1, code="515"), EshotSearchResult(id=2, code=" 5 ")]
    assert pick_hit("5", hits).id == 2
    assert pick_hit("7", hits) is None
    assert pick_hit("7", []) is None


def _detail():
    return [
        {
            "direction": 1,
            "tracks": ["LINESTRING (27.10 38.40, 27.11 38.41)", "LINESTRING (27.12 38.42)"],
            "stations": [
                {"lat": 38.40, "lng": 27.10, "id": 1, "name": "Konak", "code": "10001"},
                {"lat": 38.41, "lng": 27.11, "id": 2, "name": "Alsancak", "code": "10002"},
                {"lat": 38.40, "lng": 27.10, "id": 1, "name": "Konak", "code": "10001"},
                {"lat": 38.45, "lng": 27.15, "id": 3, "name": "No code", "code": "X-1"},
            ],
            "times": [
                {"time": "06:00", "day": WEEKDAY_BITS | SATURDAY_BITS},
                {"time": "07:00", "day": SUNDAY_BITS},
                {"time": "bad", "day": WEEKDAY_BITS},
            ],
        },
        {"direction": 2, "tracks": [], "stations": [], "times": []},
        {"direction": 9, "tracks": [], "stations": [], "times": []},
    ]


def test_detail_to_rows():
    directions = [EshotDirection.model_validate(d) for d in _detail()]
    rows = detail_to_rows("5", directions, "izmir")

    assert [s.stop_code for s in rows.stops] == [10001, 10002]
    assert [(ls.route_code, ls.stop_order) for ls in rows.line_stops] == [("5_G_D0", 1), ("5_G_D0", 2)]
    assert len(rows.route_paths) == 1
    assert len(rows.route_paths[0].points) == 3
    assert rows.skipped_directions == 2
    assert rows.dropped_times == 1

    tt = rows.timetables[0]
    assert [t.isoformat() for t in tt.buckets["saturday"]] == ["06:00:00"]
    assert [t.isoformat() for t in tt.buckets["sunday"]] == ["07:00:00"]
    assert [t.isoformat() for t in tt.buckets["monday"]] == ["06:00:00"]


def test_sync_stops_skips_unresolved_line_and_continues(db, eshot_cfg, monkeypatch):
    slept = []
    monkeypatch.setattr("transit_sync.jobs.sync.sources.eshot.source.throttle", slept.append)
    upsert_lines(db, [LineRecord("404", "Ghost", "izmir"), LineRecord("5", "Konak", "izmir")])

    searches = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["authorization"] == "Bearer anon-token"
        if request.url.path.endswith("/SearchLine"):
            text = request.url.params["text"]
            searches.append(text)
            if text == "5":
                return httpx.Response(200, json={"data": [{"id": 55, "name": "Konak", "code": "5"}]})
            return httpx.Response(200, json={"data": []})
        if request.url.path.endswith("/GetLineDetail"):
            assert request.url.params["lineId"] == "55"
            return httpx.Response(200, json={"data": _detail()})
        return httpx.Response(404)

    source = EshotSource(cfg=eshot_cfg, transport=httpx.MockTransport(handler))
    result = source.sync_stops(db, AUTH)

    assert searches == ["404", "5"]
    assert result.stats["lines_unresolved"] == 1
    assert result.stats["stops_written"] == 2
    assert slept == [eshot_cfg.search_delay, eshot_cfg.line_delay]

    assert {s.stop_code for s in db.scalars(select(Stop))} == {10001, 10002}
    assert {ls.route_code for ls in db.scalars(select(LineStop))} == {"5_G_D0"}
    assert db.scalars(select(RoutePath)).one().route_code == "5_G_D0"
    assert db.scalars(select(Timetable)).one().sunday == ["07:00:00"]

    # re-running overwrites, never duplicates
    source.sync_stops(db, AUTH)
    assert len(db.scalars(select(Stop)).all()) == 2
    assert len(db.scalars(select(LineStop)).all()) == 2


def test_sync_stops_skips_line_whose_search_only_finds_other_codes(db, eshot_cfg, monkeypatch):
    slept = []
    monkeypatch.setattr("transit_sync.jobs.sync.sources.eshot.source.throttle", slept.append)
    upsert_lines(db, [LineRecord("7", "Line 7", "izmir")])

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/SearchLine"):
            return httpx.Response(200, json={"data": [{"id": 517, "name": "Line 517", "code": "517"}]})
        raise AssertionError(f"unexpected request {request.url}")

    source = EshotSource(cfg=eshot_cfg, transport=httpx.MockTransport(handler))
    result = source.sync_stops(db, AUTH)

    assert result.stats["lines_unresolved"] == 1
    assert result.stats["stops_written"] == 0
    assert slept == [eshot_cfg.search_delay]
    assert db.scalars(select(LineStop)).all() == []
    assert db.scalars(select(Timetable)).all() == []


def test_error_object_in_line_detail_is_fatal(db, eshot_cfg, monkeypatch):
    monkeypatch.setattr("transit_sync.jobs.sync.sources.eshot.source.throttle", lambda s: None)
    upsert_lines(db, [LineRecord("5", "Konak", "izmir")])

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/SearchLine"):
            return httpx.Response(200, json={"data": [{"id": 55, "code": "5"}]})
        return httpx.Response(200, json={"data": {"message": "line not found"}})

    source = EshotSource(cfg=eshot_cfg, transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamDecodeError):
        source.sync_stops(db, AUTH)
