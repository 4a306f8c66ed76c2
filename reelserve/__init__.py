from importlib import metadata

from .media import NotAFile, NotFound, ResolveError, ServableFile, UnsupportedType, list_servable, resolve
from .negotiate import ResponseDescriptor, build_response
from .ranges import ByteRange, RangeDecision, RangeKind, parse_range
from .streamer import IoFailure, StreamOutcome, StreamResult, iter_range, stream

try:
    __version__ = metadata.version("reelserve")
except metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "ServableFile",
    "ResolveError",
    "NotFound",
    "UnsupportedType",
    "NotAFile",
    "resolve",
    "list_servable",
    "ByteRange",
    "RangeDecision",
    "RangeKind",
    "parse_range",
    "ResponseDescriptor",
    "build_response",
    "IoFailure",
    "StreamOutcome",
    "StreamResult",
    "iter_range",
    "stream",
    "__version__",
]
