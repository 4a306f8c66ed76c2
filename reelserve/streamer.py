"""
Chunked read-and-forward loop from a file on disk to a client.

Each transfer owns its own handle and never holds more than one chunk in
memory. A client going away mid-transfer is routine (players seek by
dropping the connection and asking for a new range) and is only traced at
debug level.
"""
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 256 * 1024

# Raised by socket writes when the peer is gone or stopped reading
DISCONNECT_ERRORS = (BrokenPipeError, ConnectionResetError, ConnectionAbortedError, socket.timeout)


class IoFailure(Exception):
    """Reading the file failed after the response was decided."""

    def __init__(self, path, reason, remaining=None):
        self.path = path
        self.reason = reason
        self.remaining = remaining
        super().__init__(f'{path}: {reason}')

    @property
    def status(self):
        """HTTP status for a failure caught before any header was sent."""
        return 404 if isinstance(self.__cause__, FileNotFoundError) else 500


class StreamOutcome(Enum):
    COMPLETE = 'complete'
    DISCONNECTED = 'disconnected'
    IO_FAILURE = 'io-failure'


@dataclass
class StreamResult:
    outcome: StreamOutcome
    bytes_sent: int
    error: Optional[BaseException] = None

    @property
    def complete(self):
        return self.outcome is StreamOutcome.COMPLETE


def open_servable(servable):
    """Open ``servable`` for reading, turning OSError into IoFailure.

    HTTP layers call this before sending the status line so a file that
    vanished or became unreadable since it was stat-ed can still get a
    clean error response.
    """
    try:
        return open(servable.path, 'rb')
    except OSError as e:
        raise IoFailure(servable.path, f'open failed: {e}', servable.size) from e


def iter_range(servable, body_range, chunk_size=DEFAULT_CHUNK_SIZE, handle=None):
    """Yield the bytes of ``body_range`` from ``servable`` in order.

    ``handle`` is an already open file that the iterator takes over and
    closes. Without one the file is opened on the first ``next()``, so an
    iterator that is never consumed never touches the disk. Closing the
    iterator early closes the handle.
    """
    if body_range is None:
        if handle is not None:
            handle.close()
        return
    if chunk_size <= 0:
        raise ValueError('chunk_size must be positive')

    f = handle if handle is not None else open_servable(servable)
    with f:
        remaining = body_range.length
        try:
            f.seek(body_range.start)
        except OSError as e:
            raise IoFailure(servable.path, f'seek failed: {e}', remaining) from e

        while remaining > 0:
            try:
                chunk = f.read(min(chunk_size, remaining))
            except OSError as e:
                raise IoFailure(servable.path, f'read failed: {e}', remaining) from e
            if not chunk:
                # truncated or replaced since it was stat-ed
                raise IoFailure(servable.path, 'file ended early', remaining)
            remaining -= len(chunk)
            yield chunk


def stream(servable, body_range, sink, chunk_size=DEFAULT_CHUNK_SIZE, handle=None):
    """Copy ``body_range`` of ``servable`` into ``sink`` (anything with ``write``).

    Returns a StreamResult instead of raising for disconnects and I/O
    failures; there is no retry, the client re-requests a range to resume.
    ``handle`` is closed before returning.
    """
    sent = 0
    chunks = iter_range(servable, body_range, chunk_size, handle)
    try:
        for chunk in chunks:
            try:
                sink.write(chunk)
            except DISCONNECT_ERRORS as e:
                logger.debug('Client went away from %s after %d bytes: %s', servable.name, sent, e)
                return StreamResult(StreamOutcome.DISCONNECTED, sent, e)
            sent += len(chunk)
    except IoFailure as e:
        logger.warning('Stream of %s stopped after %d bytes: %s', servable.name, sent, e.reason)
        return StreamResult(StreamOutcome.IO_FAILURE, sent, e)
    finally:
        chunks.close()
        if handle is not None:
            handle.close()
    return StreamResult(StreamOutcome.COMPLETE, sent)


def iter_body(servable, body_range, chunk_size=DEFAULT_CHUNK_SIZE, handle=None):
    """WSGI body for ``body_range``.

    The server closes this iterator when the client disconnects; an
    IoFailure ends the body early, which the client sees as a short read
    against the announced Content-Length. A ``handle`` is only released once
    iteration has started, so callers passing one also register its close
    with the response.
    """
    sent = 0
    chunks = iter_range(servable, body_range, chunk_size, handle)
    try:
        for chunk in chunks:
            yield chunk
            sent += len(chunk)
    except GeneratorExit:
        logger.debug('Client went away from %s after %d bytes', servable.name, sent)
        raise
    except IoFailure as e:
        logger.warning('Stream of %s stopped after %d bytes: %s', servable.name, sent, e.reason)
    finally:
        chunks.close()
