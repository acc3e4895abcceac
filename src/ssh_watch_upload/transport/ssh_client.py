"""SSH/SFTP 전송 클라이언트 모듈.

paramiko 기반 블로킹 호출을 asyncio.to_thread 로 감싼 비동기 클라이언트.
"""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
import threading

import paramiko

from src.ssh_watch_upload.models.build import ConnectionCredentials

logger = logging.getLogger(__name__)


class SSHConnectionError(Exception):
    """SSH 연결 실패."""

    def __init__(self, host: str, message: str):
        super().__init__(f"{host}: {message}")
        self.host = host


class TransferError(Exception):
    """파일 전송 실패."""

    def __init__(self, local_path: str, remote_path: str, message: str):
        super().__init__(f"{local_path} -> {remote_path}: {message}")
        self.local_path = local_path
        self.remote_path = remote_path


class SSHTransport:
    """paramiko 기반 SFTP 전송 클라이언트.

    기능:
    - 개인키(+passphrase) 또는 비밀번호 인증
    - keep-alive 로 유휴 연결 유지
    - 원격 상위 디렉토리 자동 생성
    - 단일 SFTP 채널 공유 (전송 호출은 내부 Lock 으로 직렬화)

    Examples:
        ```python
        transport = SSHTransport(connect_timeout=20.0)
        await transport.connect(credentials)

        await transport.put_file("/work/dist/app.js", "/var/www/dist/app.js")

        await transport.dispose()
        ```
    """

    def __init__(
        self,
        connect_timeout: float = 20.0,
        keepalive_interval: int = 30,
    ) -> None:
        """초기화.

        Args:
            connect_timeout: 연결/배너/인증 타임아웃 (초)
            keepalive_interval: keep-alive 간격 (초, 0이면 비활성화)
        """
        self.connect_timeout = connect_timeout
        self.keepalive_interval = keepalive_interval
        self._client: paramiko.SSHClient | None = None
        self._sftp: paramiko.SFTPClient | None = None
        self._lock = threading.Lock()
        self._known_dirs: set[str] = set()

    @property
    def is_connected(self) -> bool:
        """연결 활성 여부."""
        if self._client is None or self._sftp is None:
            return False
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    async def connect(self, credentials: ConnectionCredentials) -> None:
        """SSH 연결 및 SFTP 세션 열기.

        Args:
            credentials: 연결 정보

        Raises:
            SSHConnectionError: 연결/인증 실패 시
        """
        await asyncio.to_thread(self._connect, credentials)
        logger.info(
            f"SSH 연결: {credentials.username}@{credentials.host}:{credentials.port}"
        )

    def _connect(self, credentials: ConnectionCredentials) -> None:
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        kwargs: dict = dict(
            hostname=credentials.host,
            port=credentials.port,
            username=credentials.username,
            timeout=self.connect_timeout,
            banner_timeout=self.connect_timeout,
            auth_timeout=self.connect_timeout,
        )
        if credentials.private_key:
            kwargs["key_filename"] = os.path.expanduser(credentials.private_key)
            if credentials.passphrase:
                kwargs["passphrase"] = credentials.passphrase
        else:
            kwargs["password"] = credentials.passphrase
            kwargs["allow_agent"] = False
            kwargs["look_for_keys"] = False

        try:
            client.connect(**kwargs)
            if self.keepalive_interval:
                client.get_transport().set_keepalive(self.keepalive_interval)
            sftp = client.open_sftp()
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise SSHConnectionError(credentials.host, str(e)) from e

        self._client = client
        self._sftp = sftp
        self._known_dirs.clear()

    async def put_file(self, local_path: str, remote_path: str) -> None:
        """로컬 파일을 원격 경로로 업로드.

        Args:
            local_path: 로컬 절대 경로
            remote_path: 원격 절대 경로

        Raises:
            TransferError: 미연결 또는 전송 실패 시
        """
        if not self.is_connected:
            raise TransferError(local_path, remote_path, "not connected")

        await asyncio.to_thread(self._put_file, local_path, remote_path)

    def _put_file(self, local_path: str, remote_path: str) -> None:
        with self._lock:
            try:
                self._makedirs(posixpath.dirname(remote_path))
                self._sftp.put(local_path, remote_path)
            except (paramiko.SSHException, OSError) as e:
                raise TransferError(local_path, remote_path, str(e)) from e

    def _makedirs(self, remote_dir: str) -> None:
        """원격 디렉토리 재귀 생성 (mkdir -p)."""
        if not remote_dir or remote_dir in self._known_dirs:
            return

        try:
            self._sftp.stat(remote_dir)
        except FileNotFoundError:
            parent = posixpath.dirname(remote_dir.rstrip("/"))
            if parent and parent != remote_dir:
                self._makedirs(parent)
            self._sftp.mkdir(remote_dir)
            logger.debug(f"원격 디렉토리 생성: {remote_dir}")

        self._known_dirs.add(remote_dir)

    async def dispose(self) -> None:
        """연결 종료."""
        if self._client is None:
            return
        await asyncio.to_thread(self._close)
        logger.info("SSH 연결 종료")

    def _close(self) -> None:
        with self._lock:
            if self._sftp is not None:
                self._sftp.close()
            if self._client is not None:
                self._client.close()
            self._sftp = None
            self._client = None
