from transit_sync.jobs.sync.sources.eshot.source import EshotSource
from transit_sync.jobs.sync.sources.iett.source import IettSource

SOURCES = {
    "iett": IettSource,
    "eshot": EshotSource,
}
