import logging
from typing import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from transit_sync.jobs.sync.normalize.dedup import first_wins
from transit_sync.jobs.sync.normalize.daytype import WEEKDAYS
from transit_sync.jobs.sync.normalize.geometry import points_to_json
from transit_sync.jobs.sync.types import (
    LineRecord,
    LineStopRecord,
    RoutePathRecord,
    RouteRecord,
    StopRecord,
    TimetableRecord,
)
from transit_sync.models.line_stops import LineStop
from transit_sync.models.lines import Line
from transit_sync.models.route_paths import RoutePath
from transit_sync.models.routes import Route
from transit_sync.models.stops import Stop
from transit_sync.models.timetables import Timetable

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000

LINE_KEY = ("code", "city")
ROUTE_KEY = ("route_code", "city")
STOP_KEY = ("stop_code", "city")
LINE_STOP_KEY = ("route_code", "stop_code", "city")
ROUTE_PATH_KEY = ("route_code", "city")
TIMETABLE_KEY = ("route_code", "city")


def _insert_for(db: Session, model):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Unsupported dialect for upserts: {dialect}")


def upsert_rows(
    db: Session,
    model,
    rows: Sequence[dict],
    index_elements: Sequence[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> dict:
    """
    Insert rows, or overwrite every non-key column when the natural key exists.
    Requires a UNIQUE constraint on index_elements.

    Rows sharing a natural key within the batch collapse to the first one,
    since Postgres refuses to touch the same row twice in one ON CONFLICT statement.
    Each chunk is committed on its own.
    """
    unique_rows = first_wins(rows, key=lambda r: tuple(r[k] for k in index_elements))
    if not unique_rows:
        return {"total": len(rows), "written": 0}

    update_cols = [c for c in unique_rows[0] if c not in index_elements]

    written = 0
    for i in range(0, len(unique_rows), chunk_size):
        chunk = unique_rows[i:i + chunk_size]
        stmt = _insert_for(db, model).values(chunk)
        if update_cols:
            stmt = stmt.on_conflict_do_update(
                index_elements=list(index_elements),
                set_={c: stmt.excluded[c] for c in update_cols},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(index_elements))

        db.execute(stmt)
        db.commit()
        written += len(chunk)

    logger.debug("Upserted %d/%d rows into %s", written, len(rows), model.__tablename__)
    return {"total": len(rows), "written": written}


def upsert_lines(db: Session, lines: Iterable[LineRecord]) -> dict:
    rows = [{"code": ln.code, "title": ln.title, "city": ln.city} for ln in lines]
    return upsert_rows(db, Line, rows, LINE_KEY)


def upsert_routes(db: Session, routes: Iterable[RouteRecord]) -> dict:
    rows = [
        {
            "route_code": r.route_code,
            "route_short_name": r.route_short_name,
            "route_long_name": r.route_long_name,
            "route_type": r.route_type,
            "route_desc": r.route_desc,
            "agency_id": r.agency_id,
            "city": r.city,
        }
        for r in routes
    ]
    return upsert_rows(db, Route, rows, ROUTE_KEY)


def upsert_stops(db: Session, stops: Iterable[StopRecord]) -> dict:
    rows = [
        {
            "stop_code": s.stop_code,
            "stop_name": s.stop_name,
            "x_coord": s.x_coord,
            "y_coord": s.y_coord,
            "province": s.province,
            "city": s.city,
        }
        for s in stops
    ]
    return upsert_rows(db, Stop, rows, STOP_KEY)


def upsert_line_stops(db: Session, line_stops: Iterable[LineStopRecord]) -> dict:
    rows = [
        {
            "line_code": ls.line_code,
            "stop_code": ls.stop_code,
            "stop_order": ls.stop_order,
            "route_code": ls.route_code,
            "city": ls.city,
        }
        for ls in line_stops
    ]
    return upsert_rows(db, LineStop, rows, LINE_STOP_KEY)


def upsert_route_paths(db: Session, paths: Iterable[RoutePathRecord]) -> dict:
    rows = [
        {"route_code": p.route_code, "city": p.city, "route_path": points_to_json(p.points)}
        for p in paths
    ]
    return upsert_rows(db, RoutePath, rows, ROUTE_PATH_KEY)


def upsert_timetables(db: Session, timetables: Iterable[TimetableRecord]) -> dict:
    rows = []
    for tt in timetables:
        row = {"route_code": tt.route_code, "city": tt.city}
        for day in WEEKDAYS:
            row[day] = [t.isoformat() for t in tt.buckets.get(day, ())]
        rows.append(row)
    return upsert_rows(db, Timetable, rows, TIMETABLE_KEY)


def load_lines(db: Session, city: str) -> list[Line]:
    return list(db.scalars(select(Line).where(Line.city == city).order_by(Line.code)))


def load_routes(db: Session, city: str) -> list[Route]:
    return list(db.scalars(select(Route).where(Route.city == city).order_by(Route.route_code)))


def existing_route_path_codes(db: Session, city: str) -> set[str]:
    return set(db.scalars(select(RoutePath.route_code).where(RoutePath.city == city)))


def count_rows(db: Session, model, city: str) -> int:
    return int(db.scalar(select(func.count()).select_from(model).where(model.city == city)))
