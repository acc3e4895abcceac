"""연결 세션 컨트롤러 모듈.

연결 수립, 최초 빌드 전체 업로드(bootstrap), 연결 종료를 관리합니다.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Callable
from typing import Any

from src.ssh_watch_upload.config.settings import Settings
from src.ssh_watch_upload.core.upload_scheduler import UploadScheduler
from src.ssh_watch_upload.models.build import BuildOutcome
from src.ssh_watch_upload.models.session import SessionState
from src.ssh_watch_upload.transport.ssh_client import SSHConnectionError, SSHTransport

logger = logging.getLogger(__name__)


class SessionController:
    """SSH 연결 세션 컨트롤러.

    상태 전이:
    - UNCONNECTED -> CONNECTING: development 모드에서 start() 시 1회
    - CONNECTING -> CONNECTED: 설정 검증 + 연결 성공
    - CONNECTED -> DISPOSED: 단발 빌드의 bootstrap 전송이 모두 끝난 뒤

    설정 누락/연결 실패 시 UNCONNECTED 로 남으며 예외를 던지지 않습니다.

    Examples:
        ```python
        controller = SessionController(settings, transport, scheduler)
        controller.start()  # 연결은 백그라운드 태스크

        await controller.on_build_done(outcome)
        ```
    """

    def __init__(
        self,
        settings: Settings,
        transport: SSHTransport,
        scheduler: UploadScheduler,
        open_browser: Callable[[str], Any] = webbrowser.open,
    ) -> None:
        """초기화.

        Args:
            settings: 설정
            transport: 원격 전송 클라이언트
            scheduler: 업로드 스케줄러 (transport 를 빌려 사용)
            open_browser: 미리보기 URL 열기 함수
        """
        self.settings = settings
        self.transport = transport
        self.scheduler = scheduler
        self.open_browser = open_browser

        self.state = SessionState.UNCONNECTED
        self.has_completed_initial_bootstrap = False

        self._connect_task: asyncio.Task[bool] | None = None
        self._background: set[asyncio.Task[Any]] = set()

        self.scheduler.gate = self.wait_until_ready

    @property
    def is_active(self) -> bool:
        """start() 로 연결을 시작했는지 여부."""
        return self._connect_task is not None

    def start(self) -> bool:
        """세션 시작.

        development 모드가 아니면 경고만 남기고 아무것도 하지 않습니다.

        Returns:
            시작 여부
        """
        if not self.settings.is_development:
            logger.warning(
                f"development 모드에서만 동작합니다 (현재: {self.settings.mode!r})"
            )
            return False

        if self._connect_task is None:
            self._connect_task = asyncio.create_task(self.connect(), name="ssh-connect")
        return True

    async def connect(self) -> bool:
        """설정 검증 후 연결.

        Returns:
            연결 성공 여부
        """
        missing = self.settings.missing_connection_fields()
        for name in missing:
            logger.warning(f"필수 설정 누락: {name}")
        if missing:
            return False

        self.state = SessionState.CONNECTING
        try:
            await self.transport.connect(self.settings.credentials)
        except SSHConnectionError as e:
            logger.error(f"서버 연결 실패: {e}")
            self.state = SessionState.UNCONNECTED
            return False
        except Exception as e:
            logger.error(f"서버 연결 중 예상치 못한 오류: {e}")
            self.state = SessionState.UNCONNECTED
            return False

        self.state = SessionState.CONNECTED
        logger.info("서버 연결 완료, 변경 감시 중...")

        url = self.settings.preview_url
        if self.settings.open_domain and url:
            self._spawn(self._open_preview(url), name="open-preview")
        return True

    async def wait_until_ready(self) -> bool:
        """연결 결과 대기 (업로드 게이트).

        Returns:
            전송 가능 여부
        """
        if self.state is SessionState.CONNECTED:
            return True
        if self.state is SessionState.DISPOSED or self._connect_task is None:
            return False
        return await asyncio.shield(self._connect_task)

    async def on_build_done(self, outcome: BuildOutcome) -> None:
        """빌드 완료 처리.

        매니페스트(설정 시)는 매번 업로드하고, 최초 1회만 전체 산출물을
        업로드합니다. 단발 빌드면 최초 업로드가 모두 끝난 뒤 연결을 종료합니다.

        Args:
            outcome: 빌드 결과
        """
        batch: list[asyncio.Task[None]] = []
        if self.settings.upload_manifest_file:
            batch.append(self.scheduler.dispatch(self.settings.manifest_file_name))

        if self.has_completed_initial_bootstrap:
            return

        self.has_completed_initial_bootstrap = True
        for identifier in sorted(outcome.emitted_artifact_identifiers):
            batch.append(self.scheduler.dispatch(identifier))
        logger.info(f"초기 업로드 시작: {len(batch)}개 파일")

        if outcome.is_watch_mode_continuous:
            return

        # 성공 여부와 무관하게 모두 끝난 뒤 종료
        await asyncio.gather(*batch, return_exceptions=True)
        await self.dispose()

    async def dispose(self) -> None:
        """연결 종료 (재연결 불가)."""
        if self.state is SessionState.DISPOSED:
            return

        # 진행 중인 연결 시도가 끝난 뒤 닫아야 연결이 남지 않음
        if self._connect_task is not None:
            await asyncio.gather(self._connect_task, return_exceptions=True)
        self.state = SessionState.DISPOSED
        await self.transport.dispose()
        logger.info("세션 종료")

    async def _open_preview(self, url: str) -> None:
        logger.info(f"미리보기 열기: {url}")
        try:
            await asyncio.to_thread(self.open_browser, url)
        except Exception as e:
            logger.warning(f"미리보기 열기 실패 ({url}): {e}")

    def _spawn(self, coro: Any, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
