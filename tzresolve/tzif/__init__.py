"""Readers for the TZif binary format and the POSIX TZ rule grammar."""

from .model import OffsetRecord, ParsedDatabase, RawTransition
from .posix import PosixRule, RuleOccurrence, parse_tz_rule
from .reader import ByteReader
from .tzif import read_tzif, write_tzif

__all__ = [
    "ByteReader",
    "OffsetRecord",
    "ParsedDatabase",
    "PosixRule",
    "RawTransition",
    "RuleOccurrence",
    "parse_tz_rule",
    "read_tzif",
    "write_tzif",
]
