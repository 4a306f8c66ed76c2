import builtins

import pytest

from reelserve import streamer
from reelserve.app import create_app
from reelserve.config import ServerConfig

MOVIE_BYTES = bytes(i % 251 for i in range(1000))


# video dir with a 1000-byte movie, edge-size files, a non-video and a
# secret video sitting next to (outside) the root
@pytest.fixture
def media_dir(tmp_path):
    root = tmp_path / "videos"
    root.mkdir()
    (root / "movie.mp4").write_bytes(MOVIE_BYTES)
    (root / "empty.webm").write_bytes(b"")
    (root / "one.mkv").write_bytes(b"x")
    (root / "notes.txt").write_bytes(b"not a video")
    (root / "folder.mp4").mkdir()
    (root / "season1").mkdir()
    (root / "season1" / "ep1.MOV").write_bytes(b"episode one")
    (tmp_path / "secret.mp4").write_bytes(b"top secret")
    return root


@pytest.fixture
def config(media_dir):
    # small chunks so every body spans several reads
    return ServerConfig(video_dir=media_dir, host="127.0.0.1", port=0, chunk_size=64).validate()


@pytest.fixture
def app(config):
    flask_app = create_app(config)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def opened_files(monkeypatch):
    """Every file object the streamer opens, to check none is left open."""
    handles = []

    def tracking_open(*args, **kwargs):
        f = builtins.open(*args, **kwargs)
        handles.append(f)
        return f

    monkeypatch.setattr(streamer, "open", tracking_open, raising=False)
    return handles


@pytest.fixture
def movie_bytes():
    return MOVIE_BYTES
