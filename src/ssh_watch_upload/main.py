"""SSH Watch Upload 메인 진입점."""

from __future__ import annotations

import argparse
import asyncio
import logging

from src.ssh_watch_upload.config.settings import Settings
from src.ssh_watch_upload.core.lifecycle import LifecycleAdapter
from src.ssh_watch_upload.core.session import SessionController
from src.ssh_watch_upload.core.upload_scheduler import UploadScheduler
from src.ssh_watch_upload.file_watcher import OutputWatcher
from src.ssh_watch_upload.transport.ssh_client import SSHTransport

logger = logging.getLogger(__name__)


class WatchUploadAgent:
    """빌드 출력 -> SSH 서버 업로드 에이전트."""

    def __init__(self, settings: Settings) -> None:
        """초기화.

        Args:
            settings: 설정
        """
        self.settings = settings
        self.transport = SSHTransport(
            connect_timeout=settings.connect_timeout,
            keepalive_interval=settings.keepalive_interval,
        )
        self.scheduler = UploadScheduler(
            self.transport,
            upload_path=settings.upload_path,
        )
        self.controller = SessionController(settings, self.transport, self.scheduler)
        self.watcher = OutputWatcher(
            settings.full_output_path,
            watch=settings.watch,
            debounce=settings.watch_debounce,
        )
        self.adapter = LifecycleAdapter(self.controller, self.scheduler)

    async def start(self) -> None:
        """에이전트 시작."""
        if not self.adapter.apply(self.watcher):
            return

        logger.info("=" * 60)
        logger.info("SSH Watch Upload 시작")
        logger.info("=" * 60)
        logger.info(f"출력 경로: {self.watcher.output_path}")
        logger.info(f"업로드 경로: {self.settings.upload_path}")
        logger.info(f"감시 모드: {'연속' if self.settings.watch else '단발'}")
        logger.info("=" * 60)

        await self.watcher.run()

    async def stop(self) -> None:
        """에이전트 중지."""
        await self.watcher.stop()
        await self.scheduler.join()
        if self.controller.is_active:
            await self.controller.dispose()
        logger.info("SSH Watch Upload 중지")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """CLI 인자 파싱."""
    parser = argparse.ArgumentParser(
        description="빌드 출력 파일을 SSH 서버로 자동 업로드",
    )
    parser.add_argument(
        "--output-path",
        help="감시할 빌드 출력 경로 (기본: 설정값)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--watch",
        dest="watch",
        action="store_true",
        default=None,
        help="연속 감시 모드",
    )
    mode.add_argument(
        "--once",
        dest="watch",
        action="store_false",
        help="현재 출력만 업로드 후 종료",
    )
    parser.add_argument(
        "--log-level",
        help="로그 레벨 (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """환경 변수 설정에 CLI 인자 덮어쓰기."""
    overrides = {}
    if args.output_path:
        overrides["output_path"] = args.output_path
    if args.watch is not None:
        overrides["watch"] = args.watch
    if args.log_level:
        overrides["log_level"] = args.log_level
    return Settings(**overrides)


async def run(settings: Settings) -> None:
    """에이전트 실행."""
    agent = WatchUploadAgent(settings)

    try:
        await agent.start()
    except asyncio.CancelledError:
        logger.info("에이전트 태스크 취소됨")
    finally:
        await agent.stop()


def main() -> None:
    """메인 함수."""
    settings = build_settings(parse_args())

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("키보드 인터럽트 감지")


if __name__ == "__main__":
    main()
