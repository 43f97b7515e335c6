# tests/conftest.py
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from transit_sync.core.db import Base
from transit_sync.jobs.sync.sources.eshot.config import EshotConfig
from transit_sync.jobs.sync.sources.http import HttpSettings
from transit_sync.jobs.sync.sources.iett.config import IettConfig

# register every table on Base.metadata
import transit_sync.models.job_runs  # noqa: F401
import transit_sync.models.line_stops  # noqa: F401
import transit_sync.models.lines  # noqa: F401
import transit_sync.models.route_paths  # noqa: F401
import transit_sync.models.routes  # noqa: F401
import transit_sync.models.stops  # noqa: F401
import transit_sync.models.timetables  # noqa: F401


@pytest.fixture
def db():
    """In-memory SQLite session with the full schema."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def http_settings() -> HttpSettings:
    return HttpSettings(
        connect_timeout=1.0,
        read_timeout=1.0,
        write_timeout=1.0,
        pool_timeout=1.0,
        retries=1,
        backoff_base=0.0,
    )


@pytest.fixture
def iett_cfg(tmp_path, http_settings) -> IettConfig:
    return IettConfig(
        client_id="client-id",
        client_secret="client-secret",
        scope="scope",
        token_url="https://ntcapi.test/oauth2/v2/auth",
        service_url="https://ntcapi.test/service",
        soap_url="https://soap.test/HatDurakGuzergah.asmx",
        routes_alias="mainGetRoute",
        stops_alias="mainGetLineStops",
        route_path_alias="mainGetRoutePath",
        directions=("G", "D"),
        path_cache=str(tmp_path / "data" / "path.geojson"),
        path_snapshot_url=None,
        path_feature_key="GUZERGAH_K",
        http=http_settings,
        snapshot_read_timeout=1.0,
        line_delay=0.0,
        agency_id=1,
        progress_every=0,
    )


@pytest.fixture
def eshot_cfg(http_settings) -> EshotConfig:
    return EshotConfig(
        username="tur",
        password="secret",
        login_url="https://eshot.test/api/Transportation/Login",
        anonymous_user_url="https://eshot.test/api/TransportationUser/getAnonymousUser",
        search_url="https://eshot.test/api/Transportation/SearchLine",
        line_detail_url="https://eshot.test/api/Transportation/GetLineDetail",
        datastore_url="https://ckan.test/api/3/action/datastore_search",
        lines_resource_id="resource-1",
        page_size=100,
        http=http_settings,
        search_delay=0.0,
        line_delay=0.0,
        agency_id=2,
        progress_every=0,
    )
