import io

import pytest

from reelserve.media import resolve
from reelserve.ranges import ByteRange
from reelserve.streamer import IoFailure, StreamOutcome, iter_body, iter_range, stream


class DroppingSink:
    """Accepts ``limit`` bytes, then behaves like a socket whose peer hung up."""

    def __init__(self, limit, exc=BrokenPipeError):
        self.limit = limit
        self.exc = exc
        self.buf = io.BytesIO()

    def write(self, data):
        if self.buf.tell() + len(data) > self.limit:
            raise self.exc("peer closed")
        self.buf.write(data)


def test_stream_exact_span(media_dir, movie_bytes, opened_files):
    movie = resolve(media_dir, "movie.mp4")
    sink = io.BytesIO()
    result = stream(movie, ByteRange(500, 999), sink, chunk_size=64)
    assert result.complete
    assert result.bytes_sent == 500
    assert sink.getvalue() == movie_bytes[500:1000]
    assert all(f.closed for f in opened_files)


def test_chunks_never_exceed_chunk_size(media_dir, movie_bytes):
    movie = resolve(media_dir, "movie.mp4")
    chunks = list(iter_range(movie, ByteRange(3, 700), chunk_size=100))
    assert max(len(c) for c in chunks) <= 100
    assert b"".join(chunks) == movie_bytes[3:701]


def test_round_trip_against_reference_read(media_dir, movie_bytes):
    movie = resolve(media_dir, "movie.mp4")
    for start, end in [(0, 0), (0, 999), (999, 999), (63, 64), (128, 511), (1, 998)]:
        sink = io.BytesIO()
        stream(movie, ByteRange(start, end), sink, chunk_size=64)
        assert sink.getvalue() == movie_bytes[start:end + 1]


@pytest.mark.parametrize("exc", [BrokenPipeError, ConnectionResetError, ConnectionAbortedError])
def test_disconnect_ends_quietly_and_releases_handle(media_dir, movie_bytes, opened_files, exc):
    movie = resolve(media_dir, "movie.mp4")
    sink = DroppingSink(200, exc)
    result = stream(movie, ByteRange(0, 999), sink, chunk_size=64)
    assert result.outcome is StreamOutcome.DISCONNECTED
    assert result.bytes_sent == 192
    assert sink.buf.getvalue() == movie_bytes[:192]
    assert len(opened_files) == 1
    assert opened_files[0].closed


def test_file_deleted_after_resolve(media_dir):
    movie = resolve(media_dir, "movie.mp4")
    (media_dir / "movie.mp4").unlink()
    result = stream(movie, ByteRange(0, 999), io.BytesIO())
    assert result.outcome is StreamOutcome.IO_FAILURE
    assert result.bytes_sent == 0
    assert isinstance(result.error, IoFailure)


def test_file_truncated_after_resolve(media_dir, movie_bytes, opened_files):
    movie = resolve(media_dir, "movie.mp4")
    (media_dir / "movie.mp4").write_bytes(movie_bytes[:300])
    sink = io.BytesIO()
    result = stream(movie, ByteRange(0, 999), sink, chunk_size=64)
    assert result.outcome is StreamOutcome.IO_FAILURE
    assert sink.getvalue() == movie_bytes[:300]
    assert all(f.closed for f in opened_files)


def test_iter_range_is_lazy(media_dir, opened_files):
    movie = resolve(media_dir, "movie.mp4")
    chunks = iter_range(movie, ByteRange(0, 999))
    assert opened_files == []
    chunks.close()
    assert opened_files == []


def test_no_body_range_yields_nothing(media_dir, opened_files):
    empty = resolve(media_dir, "empty.webm")
    assert list(iter_range(empty, None)) == []
    assert opened_files == []


def test_iter_body_closed_early_releases_handle(media_dir, movie_bytes, opened_files):
    movie = resolve(media_dir, "movie.mp4")
    body = iter_body(movie, ByteRange(0, 999), chunk_size=64)
    assert next(body) == movie_bytes[:64]
    body.close()
    assert opened_files[0].closed


def test_iter_body_swallows_io_failure(media_dir, movie_bytes):
    movie = resolve(media_dir, "movie.mp4")
    (media_dir / "movie.mp4").write_bytes(movie_bytes[:100])
    assert b"".join(iter_body(movie, ByteRange(0, 999), chunk_size=64)) == movie_bytes[:100]
