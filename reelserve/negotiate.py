from dataclasses import dataclass, field
from email.utils import formatdate
from typing import Dict, Optional

from .ranges import ByteRange, RangeKind

CACHE_CONTROL = 'public, max-age=3600'


@dataclass
class ResponseDescriptor:
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body_range: Optional[ByteRange] = None

    @property
    def content_length(self):
        return self.body_range.length if self.body_range else 0


def http_date(timestamp):
    return formatdate(timestamp, usegmt=True)


def build_response(servable, decision):
    """Pick status, headers and the byte span to send for ``servable``.

    Pure computation over the already stat-ed size; nothing is opened here.
    """
    total = servable.size
    headers = {'Content-Type': servable.media_type}

    if decision.kind is RangeKind.UNSATISFIABLE:
        headers['Content-Range'] = f'bytes */{total}'
        headers['Content-Length'] = '0'
        return ResponseDescriptor(416, headers)

    if decision.kind is RangeKind.SINGLE:
        status = 206
        body_range = decision.byte_range
        headers['Content-Range'] = body_range.content_range(total)
    else:
        # NO_RANGE, and MULTI_UNSUPPORTED degraded to the whole file
        status = 200
        body_range = ByteRange(0, total - 1) if total else None

    headers['Content-Length'] = str(body_range.length if body_range else 0)
    headers['Accept-Ranges'] = 'bytes'
    if servable.mtime is not None:
        headers['Last-Modified'] = http_date(servable.mtime)
    headers['Cache-Control'] = CACHE_CONTROL
    return ResponseDescriptor(status, headers, body_range)
