"""Hierarchical polling-station reference data.

The dataset is nested as districts -> counties -> sub_counties -> parishes,
with each parish holding a list of polling stations:

    {
      "metadata": {"title": "...", "source": "...", "total_records": 1},
      "districts": {
        "001": {"name": "KALANGALA", "counties": {
          "001": {"name": "BUJUMBA", "sub_counties": {
            "001": {"name": "MUGOYE", "parishes": {
              "001": {"name": "BUGOMA", "polling_stations": [
                {"code": "01", "name": "BUGOMA P/S", "voter_count": 512}
              ]}}}}}}}
      }
    }
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from drsync.sync.models import LocationLevel, LocationPath

logger = logging.getLogger(__name__)


class LocationNotFoundError(KeyError):
    """Raised when a code does not exist under its parent."""


def station_display_name(code: str, name: str) -> str:
    return name if name else f"Station {code}"


class LocationDirectory:
    """Read-only lookups over the location dataset.

    Listing methods return levels sorted by name and return an empty list
    when a parent code is unknown.
    """

    def __init__(self, data: dict[str, Any]) -> None:
        self._metadata = data.get("metadata", {})
        self._districts: dict[str, Any] = data.get("districts", {})

    @classmethod
    def from_file(cls, path: Path) -> "LocationDirectory":
        """Load a dataset from JSON, or YAML for .yaml/.yml files."""
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
        directory = cls(data)
        logger.info(
            "Loaded location data: path=%s, districts=%d, total_records=%d",
            path, len(directory._districts), directory.total_records,
        )
        return directory

    @property
    def total_records(self) -> int:
        return int(self._metadata.get("total_records", 0))

    @staticmethod
    def _sorted_levels(nodes: dict[str, Any]) -> list[LocationLevel]:
        levels = [LocationLevel(code, node["name"]) for code, node in nodes.items()]
        return sorted(levels, key=lambda level: level.name)

    def _district(self, district_code: str) -> dict[str, Any]:
        return self._districts.get(district_code) or {}

    def _county(self, district_code: str, county_code: str) -> dict[str, Any]:
        return self._district(district_code).get("counties", {}).get(county_code) or {}

    def _sub_county(
        self, district_code: str, county_code: str, sub_county_code: str
    ) -> dict[str, Any]:
        county = self._county(district_code, county_code)
        return county.get("sub_counties", {}).get(sub_county_code) or {}

    def _parish(
        self, district_code: str, county_code: str, sub_county_code: str, parish_code: str
    ) -> dict[str, Any]:
        sub_county = self._sub_county(district_code, county_code, sub_county_code)
        return sub_county.get("parishes", {}).get(parish_code) or {}

    def districts(self) -> list[LocationLevel]:
        return self._sorted_levels(self._districts)

    def counties(self, district_code: str) -> list[LocationLevel]:
        return self._sorted_levels(self._district(district_code).get("counties", {}))

    def sub_counties(self, district_code: str, county_code: str) -> list[LocationLevel]:
        county = self._county(district_code, county_code)
        return self._sorted_levels(county.get("sub_counties", {}))

    def parishes(
        self, district_code: str, county_code: str, sub_county_code: str
    ) -> list[LocationLevel]:
        sub_county = self._sub_county(district_code, county_code, sub_county_code)
        return self._sorted_levels(sub_county.get("parishes", {}))

    def polling_stations(
        self, district_code: str, county_code: str, sub_county_code: str, parish_code: str
    ) -> list[LocationLevel]:
        """List stations of a parish, sorted by display name.

        Stations with an empty name display as "Station <code>".
        """
        parish = self._parish(district_code, county_code, sub_county_code, parish_code)
        stations = [
            LocationLevel(s["code"], station_display_name(s["code"], s.get("name", "")))
            for s in parish.get("polling_stations", [])
        ]
        return sorted(stations, key=lambda level: level.name)

    def resolve(
        self,
        district_code: str,
        county_code: str,
        sub_county_code: str,
        parish_code: str,
        polling_station_code: str,
    ) -> LocationPath:
        """Build a full LocationPath from five codes.

        Raises:
            LocationNotFoundError: If any code is unknown under its parent
        """
        chain = [
            ("district", district_code, self.districts()),
            ("county", county_code, self.counties(district_code)),
            ("sub-county", sub_county_code, self.sub_counties(district_code, county_code)),
            (
                "parish",
                parish_code,
                self.parishes(district_code, county_code, sub_county_code),
            ),
            (
                "polling station",
                polling_station_code,
                self.polling_stations(district_code, county_code, sub_county_code, parish_code),
            ),
        ]

        levels = []
        for label, code, candidates in chain:
            match = next((level for level in candidates if level.code == code), None)
            if match is None:
                raise LocationNotFoundError(f"Unknown {label} code: {code}")
            levels.append(match)

        return LocationPath(*levels)
