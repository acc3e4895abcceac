"""watchfiles 기반 빌드 출력 감시자.

빌드 도구의 출력 디렉토리를 감시하여 빌드 1회 단위의
asset_emitted / done 알림을 발생시킵니다.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

from src.ssh_watch_upload.models.build import BuildOutcome

logger = logging.getLogger(__name__)

AssetEmittedHook = Callable[[str, BuildOutcome], Coroutine[Any, Any, None]]
DoneHook = Callable[[BuildOutcome], Coroutine[Any, Any, None]]


@dataclass
class BuildHooks:
    """빌드 알림 훅 목록."""

    asset_emitted: list[AssetEmittedHook] = field(default_factory=list)
    done: list[DoneHook] = field(default_factory=list)


def compute_full_hash(output_path: Path, identifiers: Iterable[str]) -> str:
    """빌드 fingerprint 계산.

    산출물 상대 경로와 내용으로 SHA-256 생성. 읽을 수 없는 파일은 경로만 반영.

    Args:
        output_path: 출력 루트 경로
        identifiers: 산출물 식별자 목록

    Returns:
        16진수 해시 문자열
    """
    digest = hashlib.sha256()
    for identifier in sorted(identifiers):
        digest.update(identifier.encode("utf-8"))
        digest.update(b"\0")
        try:
            digest.update((output_path / identifier).read_bytes())
        except OSError:
            continue
    return digest.hexdigest()


class OutputWatcher:
    """빌드 출력 디렉토리 감시자.

    - 감시 시작 직후 기존 파일 전체를 첫 번째 빌드로 간주
    - watch=True 이면 debounce 로 묶인 변경 1건을 빌드 1회로 간주
    - watch=False 이면 첫 번째 빌드 후 종료

    Examples:
        ```python
        watcher = OutputWatcher("dist", watch=True)
        watcher.hooks.done.append(on_done)

        await watcher.run()
        ```
    """

    def __init__(
        self,
        output_path: str | Path,
        watch: bool = True,
        debounce: int = 50,
    ) -> None:
        """초기화.

        Args:
            output_path: 감시할 출력 디렉토리
            watch: 연속 감시 모드
            debounce: 변경 묶음 대기 시간 (ms)
        """
        self.output_path = Path(output_path).expanduser().resolve()
        self.watch = watch
        self.debounce = debounce
        self.hooks = BuildHooks()
        self.build_count = 0
        self._running = False
        self._stop_event: asyncio.Event | None = None

    def _identifier(self, path: str | Path) -> str | None:
        """절대 경로 -> 출력 경로 기준 상대 경로 (범위 밖이면 None)."""
        try:
            return Path(path).resolve().relative_to(self.output_path).as_posix()
        except ValueError:
            return None

    def scan_existing(self) -> list[str]:
        """출력 디렉토리의 기존 파일 전체 목록."""
        if not self.output_path.is_dir():
            return []
        return sorted(
            path.relative_to(self.output_path).as_posix()
            for path in self.output_path.rglob("*")
            if path.is_file()
        )

    def collect_changes(self, changes: Iterable[tuple[Change, str]]) -> list[str]:
        """변경 묶음에서 생성/수정된 파일 식별자 추출."""
        identifiers: set[str] = set()
        for change_type, path in changes:
            if change_type == Change.deleted:
                continue
            if not Path(path).is_file():
                continue
            identifier = self._identifier(path)
            if identifier:
                identifiers.add(identifier)
        return sorted(identifiers)

    async def run(self) -> None:
        """감시 실행 (watch=False 면 첫 빌드 후 반환)."""
        self._running = True
        self._stop_event = asyncio.Event()

        if not self.watch:
            await self.emit_build(self.scan_existing())
            return

        self.output_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"출력 경로 감시 시작: {self.output_path}")

        # 첫 yield 는 감시가 시작된 뒤에 오므로 이후 스캔은 누락 구간이 없음
        scanned = False
        try:
            async for changes in awatch(
                self.output_path,
                stop_event=self._stop_event,
                debounce=self.debounce,
                step=50,
                rust_timeout=200,
                yield_on_timeout=True,
            ):
                if not self._running:
                    break

                if not scanned:
                    # 이번 묶음의 변경은 전체 스캔에 포함됨
                    scanned = True
                    await self.emit_build(self.scan_existing())
                    continue

                identifiers = self.collect_changes(changes)
                if identifiers:
                    await self.emit_build(identifiers)
        except asyncio.CancelledError:
            logger.info("출력 경로 감시 취소됨")
            raise

    async def emit_build(self, identifiers: list[str]) -> BuildOutcome:
        """빌드 1회 알림 발생.

        Args:
            identifiers: 이번 빌드에서 출력된 산출물 식별자

        Returns:
            BuildOutcome
        """
        outcome = BuildOutcome(
            full_hash=compute_full_hash(self.output_path, identifiers),
            emitted_artifact_identifiers=frozenset(identifiers),
            is_watch_mode_continuous=self.watch,
        )
        self.build_count += 1
        logger.debug(f"빌드 #{self.build_count}: {len(identifiers)}개 산출물")

        for identifier in identifiers:
            for hook in self.hooks.asset_emitted:
                try:
                    await hook(identifier, outcome)
                except Exception as e:
                    logger.error(f"asset_emitted 처리 실패 ({identifier}): {e}")

        for hook in self.hooks.done:
            try:
                await hook(outcome)
            except Exception as e:
                logger.error(f"done 처리 실패: {e}")

        return outcome

    async def stop(self) -> None:
        """감시 중지."""
        self._running = False
        if self._stop_event:
            self._stop_event.set()
        logger.info("출력 경로 감시 중지")
