from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.orm import Session

from transit_sync.jobs.sync.types import AuthContext, StageResult


class BaseSource(ABC):
    """
    One city authority. Each stage method fetches -> normalizes -> upserts and
    returns a StageResult; stages a source has no algorithm for answer
    StageResult.not_applicable so callers can tell "ran, nothing to do" from "unsupported".
    """

    name: str = ""
    city: str = ""
    # stages that need get_credentials() to have run first
    auth_stages: frozenset[str] = frozenset()

    @abstractmethod
    def get_credentials(self) -> Optional[AuthContext]:
        raise NotImplementedError

    @abstractmethod
    def sync_lines(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        raise NotImplementedError

    def sync_routes(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        return StageResult.not_applicable("routes", f"{self.name} has no routes stage")

    def sync_stops(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        return StageResult.not_applicable("stops", f"{self.name} has no stops stage")

    def sync_route_paths(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        return StageResult.not_applicable("route_paths", f"{self.name} has no route paths stage")

    def sync_timetable(self, db: Session, auth: Optional[AuthContext] = None) -> StageResult:
        return StageResult.not_applicable("timetable", f"{self.name} has no timetable stage")
