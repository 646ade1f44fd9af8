import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    host: str = '0.0.0.0'
    port: int = 3000
    debug: bool = True
    data_file: str = 'participants-data.json'
    # None disables keeping a copy of uploaded workbooks
    upload_folder: Optional[str] = 'uploads'
    max_upload_mb: int = 16
    log_level: str = 'INFO'

    @property
    def max_content_length(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    v = v.strip()
    return v if v else None


def _getbool(name: str, default: bool) -> bool:
    v = _getenv(name)
    if v is None:
        return default
    return v.lower() in ('1', 'true', 'yes', 'on')


def _getint(name: str, default: int) -> int:
    v = _getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {v!r}")


def get_config() -> Config:
    """Read settings from the environment, loading `.env` first if present."""
    load_dotenv(override=False)

    return Config(
        host=_getenv('HOST') or '0.0.0.0',
        port=_getint('PORT', 3000),
        debug=_getbool('DEBUG', True),
        data_file=_getenv('DATA_FILE') or 'participants-data.json',
        upload_folder=_getenv('UPLOAD_FOLDER', 'uploads'),
        max_upload_mb=_getint('MAX_UPLOAD_MB', 16),
        log_level=_getenv('LOG_LEVEL') or 'INFO',
    )
