"""SessionController 테스트."""

from __future__ import annotations

import asyncio
import logging

from src.ssh_watch_upload.core.session import SessionController
from src.ssh_watch_upload.models.build import BuildOutcome
from src.ssh_watch_upload.models.session import SessionState
from src.ssh_watch_upload.transport.ssh_client import SSHConnectionError, TransferError


def build(*identifiers: str, continuous: bool = True, full_hash: str = "h1") -> BuildOutcome:
    return BuildOutcome(
        full_hash=full_hash,
        emitted_artifact_identifiers=frozenset(identifiers),
        is_watch_mode_continuous=continuous,
    )


def uploaded(mock_transport) -> list[str]:
    return sorted(call.args[1] for call in mock_transport.put_file.await_args_list)


class TestSessionStart:
    """start / 모드 테스트."""

    async def test_non_development_mode_is_inert(
        self, make_controller, mock_transport, caplog
    ) -> None:
        """development 가 아니면 연결하지 않음."""
        controller: SessionController = make_controller(mode="production")

        with caplog.at_level(logging.WARNING):
            started = controller.start()
        await asyncio.sleep(0)

        assert started is False
        assert controller.is_active is False
        assert controller.state is SessionState.UNCONNECTED
        mock_transport.connect.assert_not_awaited()
        assert "development 모드에서만 동작합니다" in caplog.text

    async def test_unknown_mode_is_inert(
        self, make_controller, mock_transport, scheduler, caplog
    ) -> None:
        """알 수 없는 모드도 경고 후 비활성."""
        controller: SessionController = make_controller(mode="staging")

        with caplog.at_level(logging.WARNING):
            assert controller.start() is False

        await scheduler.transfer_artifact("a.js")

        mock_transport.connect.assert_not_awaited()
        mock_transport.put_file.assert_not_awaited()
        assert "development 모드에서만 동작합니다 (현재: 'staging')" in caplog.text

    async def test_start_connects_in_background(
        self, make_controller, mock_transport
    ) -> None:
        """start 는 연결 태스크를 만들고 즉시 반환."""
        controller: SessionController = make_controller()

        assert controller.start() is True
        assert await controller.wait_until_ready() is True

        assert controller.state is SessionState.CONNECTED
        mock_transport.connect.assert_awaited_once_with(controller.settings.credentials)

    async def test_start_twice_connects_once(
        self, make_controller, mock_transport
    ) -> None:
        """start 중복 호출 시 연결 1회."""
        controller: SessionController = make_controller()

        controller.start()
        controller.start()
        await controller.wait_until_ready()

        assert mock_transport.connect.await_count == 1


class TestSessionConnect:
    """연결/설정 검증 테스트."""

    async def test_missing_key_and_passphrase(
        self, make_controller, mock_transport, caplog
    ) -> None:
        """개인키와 passphrase 모두 없으면 필드별 경고 후 연결하지 않음."""
        controller: SessionController = make_controller(private_key="", passphrase="")

        with caplog.at_level(logging.WARNING):
            connected = await controller.connect()

        assert connected is False
        assert controller.state is SessionState.UNCONNECTED
        mock_transport.connect.assert_not_awaited()

        warnings = [r.getMessage() for r in caplog.records if "필수 설정 누락" in r.getMessage()]
        assert warnings == ["필수 설정 누락: private_key", "필수 설정 누락: passphrase"]

    async def test_passphrase_substitutes_private_key(
        self, make_controller, mock_transport
    ) -> None:
        """passphrase 만 있어도 연결 시도."""
        controller: SessionController = make_controller(private_key="", passphrase="secret")

        assert await controller.connect() is True
        mock_transport.connect.assert_awaited_once()

    async def test_missing_host_fields(
        self, make_controller, mock_transport, caplog
    ) -> None:
        """host/port/username 누락."""
        controller: SessionController = make_controller(host="", port=None, username="")

        with caplog.at_level(logging.WARNING):
            assert await controller.connect() is False

        for name in ("host", "port", "username"):
            assert f"필수 설정 누락: {name}" in caplog.text
        mock_transport.connect.assert_not_awaited()

    async def test_connection_error_stays_unconnected(
        self, make_controller, mock_transport, caplog
    ) -> None:
        """연결 실패 시 UNCONNECTED 유지, 예외 없음."""
        mock_transport.connect.side_effect = SSHConnectionError("example.com", "refused")
        controller: SessionController = make_controller()

        with caplog.at_level(logging.ERROR):
            controller.start()
            ready = await controller.wait_until_ready()

        assert ready is False
        assert controller.state is SessionState.UNCONNECTED
        assert "서버 연결 실패" in caplog.text

    async def test_unexpected_connect_error_contained(
        self, make_controller, mock_transport, scheduler, caplog
    ) -> None:
        """예상 밖 연결 예외도 전파하지 않고 업로드만 건너뜀."""
        mock_transport.connect.side_effect = RuntimeError("boom")
        controller: SessionController = make_controller()

        with caplog.at_level(logging.WARNING):
            controller.start()
            await scheduler.transfer_artifact("a.js")

        assert controller.state is SessionState.UNCONNECTED
        assert await controller.wait_until_ready() is False
        mock_transport.put_file.assert_not_awaited()
        assert "서버 연결 중 예상치 못한 오류: boom" in caplog.text
        assert "SSH 미연결 상태, 업로드 건너뜀: a.js" in caplog.text

    async def test_connect_logs_success(self, make_controller, caplog) -> None:
        """연결 성공 로그."""
        controller: SessionController = make_controller()

        with caplog.at_level(logging.INFO):
            await controller.connect()

        assert "서버 연결 완료" in caplog.text

    async def test_opens_preview_once(self, make_controller) -> None:
        """open_domain + domain 설정 시 미리보기 1회."""
        controller: SessionController = make_controller(
            domain="theme.example.com", open_domain=True
        )

        await controller.connect()
        await asyncio.gather(*list(controller._background))

        controller.open_browser.assert_called_once_with("https://theme.example.com")

    async def test_no_preview_without_domain(self, make_controller) -> None:
        """domain 없으면 미리보기 안 함."""
        controller: SessionController = make_controller(open_domain=True)

        await controller.connect()
        await asyncio.gather(*list(controller._background))

        controller.open_browser.assert_not_called()

    async def test_preview_failure_is_contained(self, make_controller, caplog) -> None:
        """브라우저 열기 실패는 경고만."""
        controller: SessionController = make_controller(
            domain="theme.example.com", open_domain=True
        )
        controller.open_browser.side_effect = RuntimeError("no display")

        with caplog.at_level(logging.WARNING):
            assert await controller.connect() is True
            await asyncio.gather(*list(controller._background))

        assert "미리보기 열기 실패" in caplog.text


class TestWaitUntilReady:
    """업로드 게이트 테스트."""

    async def test_not_started(self, make_controller) -> None:
        """start 전에는 False."""
        controller: SessionController = make_controller()

        assert await controller.wait_until_ready() is False

    async def test_disposed(self, make_controller) -> None:
        """종료 후에는 False."""
        controller: SessionController = make_controller()
        controller.start()
        await controller.wait_until_ready()

        await controller.dispose()

        assert await controller.wait_until_ready() is False

    async def test_invalid_config_never_uploads(
        self, make_controller, mock_transport
    ) -> None:
        """설정 누락이면 업로드 없음."""
        controller: SessionController = make_controller(host="")
        controller.start()

        await controller.on_build_done(build("a.js", continuous=True))
        await controller.scheduler.join()

        mock_transport.put_file.assert_not_awaited()


class TestBuildDone:
    """빌드 완료 / bootstrap 테스트."""

    async def test_bootstrap_with_manifest(self, make_controller, mock_transport) -> None:
        """최초 빌드: 산출물 + 매니페스트 업로드, 이후 매니페스트만."""
        controller: SessionController = make_controller(upload_manifest_file=True)
        controller.start()

        await controller.on_build_done(build("a.js", "b.css"))
        await controller.scheduler.join()

        assert controller.has_completed_initial_bootstrap is True
        assert uploaded(mock_transport) == [
            "/var/www/dist/a.js",
            "/var/www/dist/b.css",
            "/var/www/dist/mix-manifest.json",
        ]

        mock_transport.put_file.reset_mock()
        await controller.on_build_done(build("a.js", "b.css", full_hash="h2"))
        await controller.scheduler.join()

        assert uploaded(mock_transport) == ["/var/www/dist/mix-manifest.json"]

    async def test_bootstrap_without_manifest(self, make_controller, mock_transport) -> None:
        """매니페스트 비활성화 시 이후 빌드는 업로드 없음."""
        controller: SessionController = make_controller()
        controller.start()

        await controller.on_build_done(build("a.js"))
        await controller.on_build_done(build("a.js", full_hash="h2"))
        await controller.scheduler.join()

        assert uploaded(mock_transport) == ["/var/www/dist/a.js"]

    async def test_custom_manifest_name(self, make_controller, mock_transport) -> None:
        """매니페스트 파일명 설정."""
        controller: SessionController = make_controller(
            upload_manifest_file=True, manifest_file_name="manifest.json"
        )
        controller.start()

        await controller.on_build_done(build())
        await controller.scheduler.join()

        assert uploaded(mock_transport) == ["/var/www/dist/manifest.json"]

    async def test_empty_first_build(self, make_controller, mock_transport) -> None:
        """산출물 0개: 업로드 없이 bootstrap 완료, 단발이면 종료."""
        controller: SessionController = make_controller()
        controller.start()

        await controller.on_build_done(build(continuous=False))

        assert controller.has_completed_initial_bootstrap is True
        mock_transport.put_file.assert_not_awaited()
        mock_transport.dispose.assert_awaited_once()
        assert controller.state is SessionState.DISPOSED

    async def test_one_shot_disposes_after_settle(
        self, make_controller, mock_transport
    ) -> None:
        """단발 빌드: 실패 포함 전체 전송 종료 후 1회 종료."""
        events: list[str] = []

        async def put_file(local_path: str, remote_path: str) -> None:
            await asyncio.sleep(0.01)
            if remote_path.endswith("b.css"):
                events.append("fail")
                raise TransferError(local_path, remote_path, "boom")
            events.append("put")

        async def dispose() -> None:
            events.append("dispose")

        mock_transport.put_file.side_effect = put_file
        mock_transport.dispose.side_effect = dispose
        controller: SessionController = make_controller(upload_manifest_file=True)
        controller.start()

        await controller.on_build_done(build("a.js", "b.css", continuous=False))

        assert events[-1] == "dispose"
        assert sorted(events[:-1]) == ["fail", "put", "put"]
        mock_transport.dispose.assert_awaited_once()
        assert controller.state is SessionState.DISPOSED

        await controller.dispose()
        mock_transport.dispose.assert_awaited_once()

    async def test_continuous_never_disposes(
        self, make_controller, mock_transport, scheduler
    ) -> None:
        """연속 감시: 종료하지 않고 이후 변경도 업로드."""
        controller: SessionController = make_controller()
        controller.start()

        await controller.on_build_done(build("a.js"))
        await scheduler.join()

        scheduler.consider_upload("a.js", build("a.js", full_hash="h2"))
        await scheduler.join()

        mock_transport.dispose.assert_not_awaited()
        assert controller.state is SessionState.CONNECTED
        assert mock_transport.put_file.await_count == 2
