"""
.. include:: ../README.md
"""

__all__ = [
    "compat",
    "config",
    "database",
    "exceptions",
    "offset",
    "offset_info",
    "rules",
    "stores",
    "tzif",
    "tzinfo",
    "zone_rules",
]
