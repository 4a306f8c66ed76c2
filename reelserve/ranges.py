import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

RANGE_HEADER_RE = re.compile(r'^\s*([A-Za-z]+)\s*=\s*(.*)$')
RANGE_SPEC_RE = re.compile(r'^([0-9]*)\s*-\s*([0-9]*)$')


@dataclass(frozen=True)
class ByteRange:
    """Inclusive interval of byte offsets, as in ``Content-Range``."""
    start: int
    end: int

    @property
    def length(self):
        return self.end - self.start + 1

    def content_range(self, total_length):
        return f'bytes {self.start}-{self.end}/{total_length}'


class RangeKind(Enum):
    NO_RANGE = 'no-range'
    SINGLE = 'single'
    UNSATISFIABLE = 'unsatisfiable'
    MULTI_UNSUPPORTED = 'multi-unsupported'


@dataclass(frozen=True)
class RangeDecision:
    kind: RangeKind
    byte_range: Optional[ByteRange] = None

    @classmethod
    def single(cls, start, end):
        return cls(RangeKind.SINGLE, ByteRange(start, end))


NO_RANGE = RangeDecision(RangeKind.NO_RANGE)
UNSATISFIABLE = RangeDecision(RangeKind.UNSATISFIABLE)
MULTI_UNSUPPORTED = RangeDecision(RangeKind.MULTI_UNSUPPORTED)


def _bounded_int(digits, total_length):
    """``int(digits)``, or None when it has more digits than ``total_length``.

    Such a value is past the end of the file whatever it is, and converting
    an arbitrarily long digit run is not free (and refused past 4300 digits).
    """
    digits = digits.lstrip('0') or '0'
    if len(digits) > len(str(total_length)):
        return None
    return int(digits)


def parse_range(header_value, total_length):
    """Interpret a ``Range`` header against a file of ``total_length`` bytes.

    Only headers that look like a byte range can make the request fail
    (``UNSATISFIABLE``); anything unrecognisable is ignored and the whole
    file is served. Lists of several ranges come back as
    ``MULTI_UNSUPPORTED`` so the caller can fall back to a full response.
    """
    if not header_value:
        return NO_RANGE

    m = RANGE_HEADER_RE.match(header_value)
    if not m or m.group(1).lower() != 'bytes':
        return NO_RANGE

    specs = [s.strip() for s in m.group(2).split(',')]
    specs = [s for s in specs if s]
    if not specs:
        return NO_RANGE
    if len(specs) > 1:
        return MULTI_UNSUPPORTED

    m = RANGE_SPEC_RE.match(specs[0])
    if not m:
        return NO_RANGE
    first, last = m.groups()
    if not first and not last:
        return NO_RANGE

    if not first:
        # suffix form: the last N bytes
        suffix = _bounded_int(last, total_length)
        if suffix is None:
            suffix = total_length
        if suffix == 0 or total_length == 0:
            return UNSATISFIABLE
        return RangeDecision.single(max(0, total_length - suffix), total_length - 1)

    start = _bounded_int(first, total_length)
    if start is None:
        return UNSATISFIABLE
    end = _bounded_int(last, total_length) if last else total_length - 1
    if end is None:
        end = total_length - 1
    if start > end or start >= total_length:
        return UNSATISFIABLE
    return RangeDecision.single(start, min(end, total_length - 1))
