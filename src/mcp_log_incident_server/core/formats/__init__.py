"""Log text parsing.

Contains the Pino JSON-lines decoder, block boundary rules and the block-aware
text parser.
"""

from __future__ import annotations

from .base import (
    BoundaryPredicate,
    LineDecoder,
    LogTextParser,
    iso_timestamp_boundary,
    json_object_boundary,
)
from .blocks import BlockLogParser
from .pino import PinoJsonDecoder, parse_level

__all__ = [
    "BlockLogParser",
    "BoundaryPredicate",
    "LineDecoder",
    "LogTextParser",
    "PinoJsonDecoder",
    "iso_timestamp_boundary",
    "json_object_boundary",
    "parse_level",
]
