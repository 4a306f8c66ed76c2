"""
Servable media files: extension whitelist, path resolution and directory listing.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)

MIME_TYPES = {
    'mp4': 'video/mp4',
    'avi': 'video/x-msvideo',
    'mkv': 'video/x-matroska',
    'mov': 'video/quicktime',
    'wmv': 'video/x-ms-wmv',
    'flv': 'video/x-flv',
    'webm': 'video/webm',
    'm4v': 'video/x-m4v',
}
VIDEO_EXTENSIONS = frozenset(MIME_TYPES)
DEFAULT_MIME_TYPE = 'application/octet-stream'


class ResolveError(Exception):
    """Base class for requests that cannot be mapped to a servable file."""
    status = 404

    def __init__(self, requested_path, reason=''):
        self.requested_path = requested_path
        self.reason = reason
        super().__init__(f'{requested_path!r}: {reason}' if reason else repr(requested_path))


class NotFound(ResolveError):
    pass


class UnsupportedType(ResolveError):
    pass


class NotAFile(ResolveError):
    pass


@dataclass(frozen=True)
class ServableFile:
    name: str
    path: Path
    size: int
    media_type: str
    mtime: Optional[float] = None

    @property
    def url_path(self):
        return '/' + quote(self.name)


def extension_of(name):
    """Lower-cased extension without the dot ('' when there is none)."""
    suffix = PurePosixPath(name).suffix
    return suffix[1:].lower() if suffix else ''


def is_video_name(name):
    return extension_of(name) in VIDEO_EXTENSIONS


def media_type_for(name):
    return MIME_TYPES.get(extension_of(name), DEFAULT_MIME_TYPE)


def _stat_servable(name, canonical):
    st = canonical.stat()
    return ServableFile(
        name=name,
        path=canonical,
        size=st.st_size,
        media_type=media_type_for(name),
        mtime=st.st_mtime,
    )


def resolve(root_dir, requested_path):
    """Map a decoded URL path to a ServableFile inside ``root_dir``.

    The containment check runs on canonical paths so a symlink inside the
    root cannot hand out a file that lives outside it. Size and mtime are
    read fresh on every call.
    """
    if not requested_path or '\x00' in requested_path:
        raise NotFound(requested_path, 'empty or invalid path')

    rel = requested_path
    if os.sep == '\\':
        rel = rel.replace('\\', '/')
    if rel.startswith('/'):
        raise NotFound(requested_path, 'absolute path')
    parts = [p for p in rel.split('/') if p not in ('', '.')]
    if not parts:
        raise NotFound(requested_path, 'empty path')
    if '..' in parts:
        raise NotFound(requested_path, 'parent directory segment')

    name = '/'.join(parts)
    if not is_video_name(name):
        raise UnsupportedType(requested_path, f'extension {extension_of(name)!r} not served')

    root = Path(root_dir).resolve()
    try:
        canonical = root.joinpath(*parts).resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError):
        raise NotFound(requested_path, 'no such file')
    except (OSError, RuntimeError) as e:
        # RuntimeError: symlink loop on older interpreters
        raise NotFound(requested_path, str(e))

    if canonical != root and root not in canonical.parents:
        raise NotFound(requested_path, 'outside the video directory')
    if not is_video_name(canonical.name):
        raise UnsupportedType(requested_path, 'link target is not a video file')
    if not canonical.is_file():
        raise NotAFile(requested_path, 'not a regular file')

    try:
        return _stat_servable(name, canonical)
    except OSError as e:
        raise NotFound(requested_path, str(e))


def list_servable(root_dir) -> List[ServableFile]:
    """Top-level video files of ``root_dir`` sorted by name; not cached."""
    root = Path(root_dir).resolve()
    videos = []
    try:
        entries = list(os.scandir(root))
    except OSError as e:
        logger.warning('Cannot list %s: %s', root, e)
        return videos

    for entry in entries:
        if not is_video_name(entry.name):
            continue
        try:
            if not entry.is_file():
                continue
            videos.append(resolve(root, entry.name))
        except (OSError, ResolveError) as e:
            # vanished or points outside the root since scandir saw it
            logger.debug('Skipping %s: %s', entry.name, e)

    videos.sort(key=lambda v: v.name)
    return videos
