from midpoint.stores.catalog import SqlStationCatalog, StaticStationCatalog
from midpoint.stores.memory import InMemoryMeetingStore
from midpoint.stores.sql import SqlMeetingStore

__all__ = [
    "InMemoryMeetingStore",
    "SqlMeetingStore",
    "SqlStationCatalog",
    "StaticStationCatalog",
]
