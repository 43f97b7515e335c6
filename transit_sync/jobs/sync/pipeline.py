"""
Stage ordering for one source.

    lines -> routes -> stops (+ line stops) -> route_paths -> timetable

Stages run one after another; every stage commits its batches before the next
starts, and later stages read what earlier ones wrote back from the database.
Credentials are acquired once, before the first stage, when any selected stage needs them.
"""

import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from transit_sync.jobs.sync.sources.base import BaseSource
from transit_sync.jobs.sync.types import AuthContext, StageResult

logger = logging.getLogger(__name__)

STAGES = ("lines", "routes", "stops", "route_paths", "timetable")

_STAGE_METHODS = {
    "lines": "sync_lines",
    "routes": "sync_routes",
    "stops": "sync_stops",
    "route_paths": "sync_route_paths",
    "timetable": "sync_timetable",
}


def validate_stages(stages: Iterable[str]) -> tuple[str, ...]:
    selected = tuple(stages)
    unknown = [s for s in selected if s not in STAGES]
    if unknown:
        raise ValueError(f"Unknown stage(s): {', '.join(unknown)}")
    if len(set(selected)) != len(selected):
        raise ValueError(f"Duplicate stage in {selected}")
    positions = [STAGES.index(s) for s in selected]
    if positions != sorted(positions):
        raise ValueError(f"Stages must run in order {STAGES}, got {selected}")
    return selected


def run_pipeline(source: BaseSource, db: Session, stages: Sequence[str] = STAGES) -> list[StageResult]:
    selected = validate_stages(stages)

    auth: Optional[AuthContext] = None
    if any(s in source.auth_stages for s in selected):
        auth = source.get_credentials()

    results: list[StageResult] = []
    for stage in selected:
        logger.info("%s: stage %s start", source.name, stage)
        result = getattr(source, _STAGE_METHODS[stage])(db, auth)
        if result.applicable:
            logger.info("%s: stage %s done %s", source.name, stage, result.stats)
        else:
            logger.info("%s: stage %s not applicable (%s)", source.name, stage, result.reason)
        results.append(result)

    return results
