"""업로드 스케줄러 모듈.

산출물 변경 여부 판단과 개별 전송 실행.
전송 실패는 산출물 단위로 격리되어 호출자에게 전파되지 않습니다.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path, PurePosixPath

from src.ssh_watch_upload.core.fingerprint_store import FingerprintStore
from src.ssh_watch_upload.models.build import BuildOutcome
from src.ssh_watch_upload.transport.ssh_client import SSHTransport

logger = logging.getLogger(__name__)


class UploadScheduler:
    """산출물 업로드 스케줄러.

    기능:
    - fingerprint 비교로 변경 없는 산출물 건너뛰기
    - 전송 전에 fingerprint 기록 (동일 빌드 해시에 대해 최대 1회 전송)
    - 전송은 즉시 개별 태스크로 실행 (큐/백프레셔 없음)
    - 연결 전 도착한 전송은 연결 결과를 기다린 뒤 실행 또는 폐기

    Examples:
        ```python
        scheduler = UploadScheduler(transport, upload_path="/var/www/dist")
        scheduler.output_path = Path("/work/dist")

        scheduler.consider_upload("js/app.js", outcome)

        await scheduler.join()
        ```
    """

    def __init__(
        self,
        transport: SSHTransport,
        upload_path: str,
        output_path: Path | str = ".",
        store: FingerprintStore | None = None,
    ) -> None:
        """초기화.

        Args:
            transport: 원격 전송 클라이언트 (세션 컨트롤러 소유)
            upload_path: 원격 업로드 루트 경로
            output_path: 로컬 출력 루트 경로
            store: fingerprint 저장소 (기본 생성)
        """
        self.transport = transport
        self.upload_path = PurePosixPath(upload_path)
        self.output_path = Path(output_path)
        self.store = store or FingerprintStore()
        # 연결 게이트: 연결 성공 시 True (세션 컨트롤러가 주입)
        self.gate: Callable[[], Awaitable[bool]] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        """진행 중인 전송 수."""
        return len(self._pending)

    def consider_upload(
        self,
        identifier: str,
        outcome: BuildOutcome,
    ) -> asyncio.Task[None] | None:
        """변경된 산출물이면 전송 예약.

        Args:
            identifier: 산출물 식별자 (상대 경로)
            outcome: 현재 빌드 결과

        Returns:
            전송 태스크 (변경 없으면 None)
        """
        if self.store.lookup(identifier) == outcome.full_hash:
            logger.debug(f"변경 없음, 건너뜀: {identifier}")
            return None

        # 전송 결과와 무관하게 먼저 기록
        self.store.record(identifier, outcome.full_hash)
        return self.dispatch(identifier)

    def dispatch(self, identifier: str) -> asyncio.Task[None]:
        """전송 태스크 즉시 실행.

        Args:
            identifier: 산출물 식별자

        Returns:
            전송 태스크 (예외 없이 완료됨)
        """
        task = asyncio.create_task(
            self.transfer_artifact(identifier),
            name=f"upload:{identifier}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def transfer_artifact(self, identifier: str) -> None:
        """산출물 1건 전송.

        실패 시 로그만 남기고 정상 반환합니다.

        Args:
            identifier: 산출물 식별자
        """
        if self.gate is not None and not await self.gate():
            logger.warning(f"SSH 미연결 상태, 업로드 건너뜀: {identifier}")
            return

        local_path = self.output_path / identifier
        remote_path = self.upload_path / PurePosixPath(Path(identifier).as_posix())

        logger.info(f"업로드 시작: {identifier}")
        try:
            await self.transport.put_file(str(local_path), str(remote_path))
        except Exception as e:
            logger.error(f"업로드 실패 ({identifier}): {e}")
            return

        logger.info(f"업로드 완료: {identifier}")

    async def join(self) -> None:
        """진행 중인 모든 전송이 끝날 때까지 대기."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
