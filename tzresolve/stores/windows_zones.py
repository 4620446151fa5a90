"""Mapping between Windows time zone names and canonical zone ids.

The default table follows the CLDR windowsZones supplemental data. A
canonical id may only be mapped to a single Windows name, while a Windows
name usually covers several canonical ids. The first canonical id listed
for a Windows name is the one it translates back to.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from functools import cache

__all__ = [
    "WindowsZoneNames",
    "default_windows_zone_names",
]

_LOGGER = logging.getLogger(__name__)


_DEFAULT_MAPPING: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("UTC", ("UTC", "Etc/UTC", "Etc/GMT")),
    ("Dateline Standard Time", ("Etc/GMT+12",)),
    ("UTC-11", ("Etc/GMT+11", "Pacific/Pago_Pago", "Pacific/Niue", "Pacific/Midway")),
    ("Hawaiian Standard Time", ("Pacific/Honolulu", "Pacific/Rarotonga", "Pacific/Tahiti")),
    ("Alaskan Standard Time", ("America/Anchorage", "America/Juneau", "America/Nome", "America/Sitka", "America/Yakutat")),
    ("Pacific Standard Time (Mexico)", ("America/Tijuana",)),
    ("Pacific Standard Time", ("America/Los_Angeles", "America/Vancouver", "PST8PDT")),
    ("US Mountain Standard Time", ("America/Phoenix", "America/Creston", "America/Hermosillo")),
    ("Mountain Standard Time", ("America/Denver", "America/Edmonton", "America/Boise", "America/Ciudad_Juarez", "MST7MDT")),
    ("Central America Standard Time", ("America/Guatemala", "America/Belize", "America/Costa_Rica", "America/El_Salvador", "America/Managua", "America/Tegucigalpa")),
    ("Central Standard Time", ("America/Chicago", "America/Winnipeg", "America/Indiana/Knox", "America/Matamoros", "America/North_Dakota/Center", "CST6CDT")),
    ("Central Standard Time (Mexico)", ("America/Mexico_City", "America/Monterrey", "America/Merida")),
    ("Canada Central Standard Time", ("America/Regina", "America/Swift_Current")),
    ("SA Pacific Standard Time", ("America/Bogota", "America/Lima", "America/Panama", "America/Guayaquil", "America/Jamaica")),
    ("Eastern Standard Time", ("America/New_York", "America/Toronto", "America/Detroit", "America/Nassau", "America/Kentucky/Louisville", "EST5EDT")),
    ("US Eastern Standard Time", ("America/Indiana/Indianapolis", "America/Indiana/Marengo", "America/Indiana/Vevay")),
    ("Venezuela Standard Time", ("America/Caracas",)),
    ("Atlantic Standard Time", ("America/Halifax", "Atlantic/Bermuda", "America/Glace_Bay", "America/Goose_Bay", "America/Moncton", "America/Thule")),
    ("SA Western Standard Time", ("America/La_Paz", "America/Puerto_Rico", "America/Santo_Domingo", "America/Manaus", "America/Barbados")),
    ("Newfoundland Standard Time", ("America/St_Johns",)),
    ("E. South America Standard Time", ("America/Sao_Paulo",)),
    ("Argentina Standard Time", ("America/Argentina/Buenos_Aires", "America/Argentina/Cordoba", "America/Argentina/Mendoza")),
    ("Montevideo Standard Time", ("America/Montevideo",)),
    ("Pacific SA Standard Time", ("America/Santiago",)),
    ("Greenland Standard Time", ("America/Nuuk",)),
    ("UTC-02", ("Etc/GMT+2", "America/Noronha", "Atlantic/South_Georgia")),
    ("Azores Standard Time", ("Atlantic/Azores", "America/Scoresbysund")),
    ("Cape Verde Standard Time", ("Atlantic/Cape_Verde", "Etc/GMT+1")),
    ("GMT Standard Time", ("Europe/London", "Atlantic/Canary", "Atlantic/Faroe", "Europe/Dublin", "Europe/Lisbon", "Europe/Guernsey", "Europe/Isle_of_Man", "Europe/Jersey")),
    ("Greenwich Standard Time", ("Atlantic/Reykjavik", "Africa/Abidjan", "Africa/Accra", "Africa/Dakar", "Atlantic/St_Helena")),
    ("Morocco Standard Time", ("Africa/Casablanca", "Africa/El_Aaiun")),
    ("W. Europe Standard Time", ("Europe/Berlin", "Europe/Amsterdam", "Europe/Rome", "Europe/Stockholm", "Europe/Vienna", "Europe/Zurich", "Europe/Oslo", "Europe/Luxembourg", "Europe/Monaco", "Europe/Vatican", "Europe/San_Marino", "Europe/Gibraltar", "Europe/Malta", "Arctic/Longyearbyen")),
    ("Central Europe Standard Time", ("Europe/Budapest", "Europe/Belgrade", "Europe/Bratislava", "Europe/Ljubljana", "Europe/Podgorica", "Europe/Prague", "Europe/Tirane")),
    ("Romance Standard Time", ("Europe/Paris", "Europe/Brussels", "Europe/Copenhagen", "Europe/Madrid", "Africa/Ceuta")),
    ("Central European Standard Time", ("Europe/Warsaw", "Europe/Sarajevo", "Europe/Skopje", "Europe/Zagreb")),
    ("W. Central Africa Standard Time", ("Africa/Lagos", "Africa/Algiers", "Africa/Tunis", "Africa/Kinshasa", "Africa/Luanda", "Etc/GMT-1")),
    ("GTB Standard Time", ("Europe/Bucharest", "Europe/Athens", "Asia/Nicosia", "Asia/Famagusta")),
    ("E. Europe Standard Time", ("Europe/Chisinau",)),
    ("Middle East Standard Time", ("Asia/Beirut",)),
    ("Egypt Standard Time", ("Africa/Cairo",)),
    ("Syria Standard Time", ("Asia/Damascus",)),
    ("South Africa Standard Time", ("Africa/Johannesburg", "Africa/Maputo", "Africa/Harare", "Africa/Lusaka", "Etc/GMT-2")),
    ("FLE Standard Time", ("Europe/Kiev", "Europe/Helsinki", "Europe/Riga", "Europe/Sofia", "Europe/Tallinn", "Europe/Vilnius", "Europe/Mariehamn")),
    ("Israel Standard Time", ("Asia/Jerusalem",)),
    ("Kaliningrad Standard Time", ("Europe/Kaliningrad",)),
    ("Libya Standard Time", ("Africa/Tripoli",)),
    ("Jordan Standard Time", ("Asia/Amman",)),
    ("Arabic Standard Time", ("Asia/Baghdad",)),
    ("Turkey Standard Time", ("Europe/Istanbul",)),
    ("Arab Standard Time", ("Asia/Riyadh", "Asia/Kuwait", "Asia/Qatar", "Asia/Bahrain", "Asia/Aden")),
    ("Belarus Standard Time", ("Europe/Minsk",)),
    ("Russian Standard Time", ("Europe/Moscow", "Europe/Kirov", "Europe/Simferopol")),
    ("E. Africa Standard Time", ("Africa/Nairobi", "Africa/Addis_Ababa", "Africa/Dar_es_Salaam", "Africa/Kampala", "Indian/Antananarivo", "Etc/GMT-3")),
    ("Iran Standard Time", ("Asia/Tehran",)),
    ("Arabian Standard Time", ("Asia/Dubai", "Asia/Muscat", "Etc/GMT-4")),
    ("Azerbaijan Standard Time", ("Asia/Baku",)),
    ("Georgian Standard Time", ("Asia/Tbilisi",)),
    ("Caucasus Standard Time", ("Asia/Yerevan",)),
    ("Mauritius Standard Time", ("Indian/Mauritius", "Indian/Reunion", "Indian/Mahe")),
    ("Afghanistan Standard Time", ("Asia/Kabul",)),
    ("West Asia Standard Time", ("Asia/Tashkent", "Asia/Samarkand", "Asia/Dushanbe", "Asia/Ashgabat", "Asia/Aqtau", "Asia/Aqtobe", "Indian/Maldives", "Etc/GMT-5")),
    ("Ekaterinburg Standard Time", ("Asia/Yekaterinburg",)),
    ("Pakistan Standard Time", ("Asia/Karachi",)),
    ("India Standard Time", ("Asia/Kolkata", "Asia/Calcutta")),
    ("Sri Lanka Standard Time", ("Asia/Colombo",)),
    ("Nepal Standard Time", ("Asia/Kathmandu",)),
    ("Central Asia Standard Time", ("Asia/Bishkek", "Asia/Urumqi", "Antarctica/Vostok", "Etc/GMT-6")),
    ("Bangladesh Standard Time", ("Asia/Dhaka", "Asia/Thimphu")),
    ("Omsk Standard Time", ("Asia/Omsk",)),
    ("Myanmar Standard Time", ("Asia/Yangon", "Indian/Cocos")),
    ("SE Asia Standard Time", ("Asia/Bangkok", "Asia/Jakarta", "Asia/Phnom_Penh", "Asia/Vientiane", "Asia/Pontianak", "Etc/GMT-7")),
    ("N. Central Asia Standard Time", ("Asia/Novosibirsk",)),
    ("North Asia Standard Time", ("Asia/Krasnoyarsk", "Asia/Novokuznetsk")),
    ("China Standard Time", ("Asia/Shanghai", "Asia/Hong_Kong", "Asia/Macau")),
    ("North Asia East Standard Time", ("Asia/Irkutsk",)),
    ("Singapore Standard Time", ("Asia/Singapore", "Asia/Kuala_Lumpur", "Asia/Manila", "Asia/Makassar", "Asia/Brunei", "Etc/GMT-8")),
    ("W. Australia Standard Time", ("Australia/Perth",)),
    ("Taipei Standard Time", ("Asia/Taipei",)),
    ("Ulaanbaatar Standard Time", ("Asia/Ulaanbaatar",)),
    ("Tokyo Standard Time", ("Asia/Tokyo", "Asia/Jayapura", "Pacific/Palau", "Etc/GMT-9")),
    ("Korea Standard Time", ("Asia/Seoul",)),
    ("Yakutsk Standard Time", ("Asia/Yakutsk", "Asia/Chita", "Asia/Khandyga")),
    ("Cen. Australia Standard Time", ("Australia/Adelaide", "Australia/Broken_Hill")),
    ("AUS Central Standard Time", ("Australia/Darwin",)),
    ("E. Australia Standard Time", ("Australia/Brisbane", "Australia/Lindeman")),
    ("AUS Eastern Standard Time", ("Australia/Sydney", "Australia/Melbourne")),
    ("West Pacific Standard Time", ("Pacific/Port_Moresby", "Pacific/Guam", "Pacific/Saipan", "Etc/GMT-10")),
    ("Tasmania Standard Time", ("Australia/Hobart",)),
    ("Vladivostok Standard Time", ("Asia/Vladivostok", "Asia/Ust-Nera")),
    ("Lord Howe Standard Time", ("Australia/Lord_Howe",)),
    ("Central Pacific Standard Time", ("Pacific/Guadalcanal", "Pacific/Noumea", "Pacific/Pohnpei", "Etc/GMT-11")),
    ("Magadan Standard Time", ("Asia/Magadan",)),
    ("New Zealand Standard Time", ("Pacific/Auckland", "Antarctica/McMurdo")),
    ("UTC+12", ("Etc/GMT-12", "Pacific/Tarawa", "Pacific/Majuro", "Pacific/Funafuti", "Pacific/Wake", "Pacific/Wallis")),
    ("Fiji Standard Time", ("Pacific/Fiji",)),
    ("Chatham Islands Standard Time", ("Pacific/Chatham",)),
    ("Tonga Standard Time", ("Pacific/Tongatapu",)),
    ("Samoa Standard Time", ("Pacific/Apia",)),
    ("Line Islands Standard Time", ("Pacific/Kiritimati", "Etc/GMT-14")),
)


class WindowsZoneNames:
    """A bidirectional table of Windows names and canonical zone ids."""

    def __init__(self, mapping: Iterable[tuple[str, Iterable[str]]]) -> None:
        """Initialize WindowsZoneNames from (windows name, canonical ids) pairs.

        A canonical id mapped to two different Windows names is ambiguous and
        raises a ValueError.
        """
        to_windows: dict[str, str] = {}
        to_canonical: dict[str, str] = {}
        for windows_name, canonical_ids in mapping:
            for canonical_id in canonical_ids:
                if not canonical_id:
                    continue
                existing = to_windows.get(canonical_id)
                if existing is None:
                    to_windows[canonical_id] = windows_name
                elif existing != windows_name:
                    raise ValueError(
                        f"Ambiguous mapping: '{canonical_id}' to '{existing}' and '{windows_name}'"
                    )
                to_canonical.setdefault(windows_name, canonical_id)
        self._to_windows = to_windows
        self._to_canonical = to_canonical

    @classmethod
    def from_cldr_xml(cls, content: str | bytes) -> WindowsZoneNames:
        """Build the table from the CLDR windowsZones.xml supplemental data."""
        root = ET.fromstring(content)
        mapping: list[tuple[str, list[str]]] = []
        for map_zone in root.iter("mapZone"):
            windows_name = map_zone.get("other")
            canonical_ids = map_zone.get("type")
            if not windows_name or canonical_ids is None:
                _LOGGER.warning("Skipping mapZone without names: %s", map_zone.attrib)
                continue
            mapping.append((windows_name, canonical_ids.split(" ")))
        return cls(mapping)

    def to_windows(self, canonical_id: str) -> str | None:
        """Return the Windows name for a canonical id."""
        return self._to_windows.get(canonical_id)

    def to_canonical(self, windows_name: str) -> str | None:
        """Return the preferred canonical id for a Windows name."""
        return self._to_canonical.get(windows_name)

    @property
    def canonical_ids(self) -> Mapping[str, str]:
        """Return the mapping of canonical ids to Windows names."""
        return self._to_windows

    @property
    def windows_names(self) -> Mapping[str, str]:
        """Return the mapping of Windows names to preferred canonical ids."""
        return self._to_canonical


@cache
def default_windows_zone_names() -> WindowsZoneNames:
    """Return the built in table of Windows zone names."""
    return WindowsZoneNames(_DEFAULT_MAPPING)
