from dataclasses import dataclass, field
from datetime import time
from types import MappingProxyType
from typing import Mapping, Optional

@dataclass(frozen=True)
class Point:
    lat: float
    lng: float

    def as_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class AuthContext:
    """Header set attached to every authorized request for one source instance."""
    headers: Mapping[str, str]

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @classmethod
    def bearer(cls, token: str, base_headers: Optional[Mapping[str, str]] = None) -> "AuthContext":
        return cls({**(base_headers or {}), "Authorization": f"Bearer {token}"})

    def as_headers(self) -> dict[str, str]:
        return dict(self.headers)


@dataclass(frozen=True)
class LineRecord:
    code: str
    title: str
    city: str


@dataclass(frozen=True)
class RouteRecord:
    route_code: str                  # <line>_<dir>_D0
    city: str
    route_short_name: Optional[str] = None
    route_long_name: Optional[str] = None
    route_type: Optional[int] = 3
    route_desc: Optional[str] = None
    agency_id: Optional[int] = None


@dataclass(frozen=True)
class StationRecord:
    """One entry of a route-direction station list, before dedup."""
    stop_code: int
    stop_name: str
    x_coord: Optional[float]         # lng
    y_coord: Optional[float]         # lat
    province: Optional[str] = None


@dataclass(frozen=True)
class StopRecord:
    stop_code: int
    stop_name: str
    x_coord: Optional[float]
    y_coord: Optional[float]
    province: Optional[str]
    city: str


@dataclass(frozen=True)
class LineStopRecord:
    line_code: str
    stop_code: int
    stop_order: int
    route_code: str
    city: str


@dataclass(frozen=True)
class RoutePathRecord:
    route_code: str
    city: str
    points: tuple[Point, ...]


@dataclass(frozen=True)
class TimetableRecord:
    route_code: str
    city: str
    # weekday name -> sorted times
    buckets: Mapping[str, tuple[time, ...]]


@dataclass(frozen=True)
class StageResult:
    stage: str
    status: str = "ok"               # "ok" | "not_applicable"
    stats: dict = field(default_factory=dict)
    reason: Optional[str] = None

    @classmethod
    def not_applicable(cls, stage: str, reason: str) -> "StageResult":
        return cls(stage=stage, status="not_applicable", reason=reason)

    @property
    def applicable(self) -> bool:
        return self.status != "not_applicable"
