"""빌드 도구 알림 -> 엔진 호출 어댑터."""

from __future__ import annotations

import logging
from pathlib import Path

from src.ssh_watch_upload.core.session import SessionController
from src.ssh_watch_upload.core.upload_scheduler import UploadScheduler
from src.ssh_watch_upload.file_watcher import OutputWatcher
from src.ssh_watch_upload.models.build import BuildOutcome

logger = logging.getLogger(__name__)


class LifecycleAdapter:
    """빌드 도구의 asset_emitted / done 알림을 엔진에 연결.

    - asset_emitted: 연속 감시 모드에서만 등록, 변경된 산출물 업로드
    - done: 항상 등록, 최초 전체 업로드 및 매니페스트 업로드
    """

    def __init__(
        self,
        controller: SessionController,
        scheduler: UploadScheduler,
    ) -> None:
        self.controller = controller
        self.scheduler = scheduler

    def apply(self, host: OutputWatcher) -> bool:
        """빌드 도구에 훅 등록.

        development 모드가 아니면 아무 훅도 등록하지 않습니다.

        Args:
            host: 빌드 출력 감시자

        Returns:
            등록 여부
        """
        if not self.controller.start():
            return False

        self.scheduler.output_path = Path(host.output_path)
        if host.watch:
            host.hooks.asset_emitted.append(self.on_asset_emitted)
        host.hooks.done.append(self.on_build_done)
        logger.debug(f"훅 등록 완료: {host.output_path} (watch={host.watch})")
        return True

    async def on_asset_emitted(self, identifier: str, outcome: BuildOutcome) -> None:
        self.scheduler.consider_upload(identifier, outcome)

    async def on_build_done(self, outcome: BuildOutcome) -> None:
        await self.controller.on_build_done(outcome)
