"""Runtime settings for sweepCAD.

Values are module globals, read once at import.  Each one can be
overridden with a ``SWEEPCAD_*`` environment variable; malformed values
fall back to the default.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _env(name: str, default: T, convert: Callable[[str], T]) -> T:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        logger.warning("ignoring malformed %s=%r, using %r", name, raw, default)
        return default


def _join_style(raw: str) -> str:
    value = raw.lower()
    if value not in ('round', 'square', 'mitre'):
        raise ValueError(f'unknown join style {raw!r}')
    return value


## geometric tolerance used for degeneracy and coincidence tests
EPSILON: float = _env('SWEEPCAD_EPSILON', 5e-06, float)

## default number of segments for circle()
CIRCLE_SEGMENTS: int = _env('SWEEPCAD_CIRCLE_SEGMENTS', 32, int)

## default join style for boolean2d.offset()
DEFAULT_JOIN_STYLE: str = _env('SWEEPCAD_JOIN_STYLE', 'round', _join_style)

## ratio of miter length to offset distance before a mitre is bevelled
MITRE_LIMIT: float = _env('SWEEPCAD_MITRE_LIMIT', 4.0, float)

## segments per quarter circle for round offset joins
OFFSET_QUAD_SEGMENTS: int = _env('SWEEPCAD_OFFSET_QUAD_SEGMENTS', 8, int)


__all__ = [
    'EPSILON',
    'CIRCLE_SEGMENTS',
    'DEFAULT_JOIN_STYLE',
    'MITRE_LIMIT',
    'OFFSET_QUAD_SEGMENTS',
]
