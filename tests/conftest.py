"""Pytest fixtures for SSH Watch Upload tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ssh_watch_upload.config.settings import Settings
from src.ssh_watch_upload.core.session import SessionController
from src.ssh_watch_upload.core.upload_scheduler import UploadScheduler


@pytest.fixture
def mock_transport():
    """SSHTransport Mock."""
    transport = MagicMock()
    transport.connect = AsyncMock(return_value=None)
    transport.put_file = AsyncMock(return_value=None)
    transport.dispose = AsyncMock(return_value=None)
    return transport


@pytest.fixture
def tmp_output_dir(tmp_path: Path) -> Path:
    """임시 빌드 출력 디렉토리."""
    output_dir = tmp_path / "dist"
    output_dir.mkdir()
    return output_dir


@pytest.fixture
def make_settings():
    """연결 정보가 채워진 Settings 생성기."""

    def _make(**overrides) -> Settings:
        values = {
            "mode": "development",
            "host": "example.com",
            "port": 22,
            "username": "deploy",
            "private_key": "/home/deploy/.ssh/id_ed25519",
            "upload_path": "/var/www/dist",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def scheduler(mock_transport, tmp_output_dir: Path) -> UploadScheduler:
    """출력 경로가 설정된 UploadScheduler."""
    return UploadScheduler(
        mock_transport,
        upload_path="/var/www/dist",
        output_path=tmp_output_dir,
    )


@pytest.fixture
def make_controller(make_settings, mock_transport, scheduler):
    """SessionController 생성기."""

    def _make(**overrides) -> SessionController:
        return SessionController(
            make_settings(**overrides),
            mock_transport,
            scheduler,
            open_browser=MagicMock(),
        )

    return _make
