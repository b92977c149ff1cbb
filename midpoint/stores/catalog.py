from midpoint.models import Station
from midpoint.stores.records import StationRecord
from midpoint.stores.sql import _storage_guard


class SqlStationCatalog:
    def all_stations(self):
        with _storage_guard("load stations"):
            return [
                StationRecord(
                    name=station.name, line=station.line, lat=station.lat, lng=station.lng
                )
                for station in Station.query.all()
            ]


class StaticStationCatalog:
    def __init__(self, stations=()):
        self._stations = tuple(stations)

    def all_stations(self):
        return list(self._stations)
