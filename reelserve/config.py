import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

from .streamer import DEFAULT_CHUNK_SIZE

load_dotenv()

DEFAULT_HOST = '0.0.0.0'
DEFAULT_PORT = 6969
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ServerConfig:
    """Startup settings; built once and never mutated afterwards."""
    video_dir: Path = Path('.')
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls):
        try:
            return cls(
                video_dir=Path(os.getenv('REELSERVE_VIDEO_DIR', '.')),
                host=os.getenv('REELSERVE_HOST', DEFAULT_HOST),
                port=int(os.getenv('REELSERVE_PORT', str(DEFAULT_PORT))),
                chunk_size=int(os.getenv('REELSERVE_CHUNK_SIZE', str(DEFAULT_CHUNK_SIZE))),
                log_level=os.getenv('REELSERVE_LOG_LEVEL', 'INFO').upper(),
            )
        except ValueError as e:
            raise ConfigError(f'Invalid numeric setting in environment: {e}')

    def override(self, **changes):
        """Copy with every non-None keyword applied (CLI flags over env)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self):
        """Return a copy with ``video_dir`` made absolute, or raise ConfigError."""
        video_dir = Path(self.video_dir).expanduser()
        if not video_dir.exists():
            raise ConfigError(f'Video directory does not exist: {video_dir}')
        if not video_dir.is_dir():
            raise ConfigError(f'Video directory is not a directory: {video_dir}')
        if not 0 <= self.port <= 65535:
            raise ConfigError(f'Port out of range: {self.port}')
        if self.chunk_size <= 0:
            raise ConfigError(f'Chunk size must be positive: {self.chunk_size}')
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f'Unknown log level: {self.log_level}')
        return replace(self, video_dir=video_dir.resolve(), log_level=self.log_level.upper())
