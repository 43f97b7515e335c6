import argparse
import uuid
from dataclasses import asdict
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from transit_sync.core.db import SessionLocal
from transit_sync.jobs.sync.pipeline import STAGES, run_pipeline
from transit_sync.jobs.sync.registry import SOURCES
from transit_sync.models.job_runs import JobRun

def main():
    p = argparse.ArgumentParser(description="Sync transit reference data from a city authority")
    p.add_argument("--source", required=True, choices=SOURCES.keys())
    p.add_argument(
        "--stage",
        action="append",
        choices=STAGES,
        help="Stage to run; repeatable, in pipeline order. Default: all stages",
    )

    args = p.parse_args()
    stages = args.stage or list(STAGES)

    source = SOURCES[args.source]()  # fails fast on missing configuration

    db: Session = SessionLocal()
    run_id = uuid.uuid4()

    job = JobRun(
        run_id=run_id,
        job_name=f"sync_{args.source}",
        status="running",
        meta={"args": {"source": args.source, "stages": stages}},
    )
    db.add(job)
    db.commit()

    try:
        results = run_pipeline(source, db, stages)
        payload = {"stages": [asdict(r) for r in results]}

        job = db.get(JobRun, run_id)
        job.status = "success"
        job.ended_at = datetime.now(timezone.utc)
        job.meta = {**(job.meta or {}), **payload}
        db.commit()

        print(payload)

    except Exception as e:
        db.rollback()
        job = db.get(JobRun, run_id)
        job.status = "fail"
        job.ended_at = datetime.now(timezone.utc)
        job.meta = {**(job.meta or {}), "error": repr(e)}
        db.commit()
        raise

    finally:
        db.close()

if __name__ == "__main__":
    main()
