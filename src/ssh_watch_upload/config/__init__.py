"""설정 모듈."""

from src.ssh_watch_upload.config.settings import Settings

__all__ = ["Settings"]
