"""SSH Watch Upload 설정 모듈.

환경 변수 기반 단일 Settings 클래스.
연결 필수값은 생성 시점이 아닌 연결 시점에 검증합니다.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.ssh_watch_upload.models.build import BuildMode, ConnectionCredentials


class Settings(BaseSettings):
    """SSH Watch Upload 설정.

    환경 변수 PREFIX: SSH_WATCH_UPLOAD_

    Examples:
        ```bash
        export SSH_WATCH_UPLOAD_HOST=example.com
        export SSH_WATCH_UPLOAD_PORT=22
        export SSH_WATCH_UPLOAD_USERNAME=deploy
        export SSH_WATCH_UPLOAD_PRIVATE_KEY=~/.ssh/id_ed25519
        export SSH_WATCH_UPLOAD_UPLOAD_PATH=/var/www/theme/dist
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="SSH_WATCH_UPLOAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === 실행 모드 ===
    mode: str = Field(
        default=BuildMode.DEVELOPMENT.value,
        description="빌드 모드 (development 에서만 동작, 그 외 값은 비활성)",
    )

    # === SSH 연결 설정 ===
    host: str = Field(default="", description="원격 호스트")
    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="SSH 포트",
    )
    username: str = Field(default="", description="SSH 사용자명")
    passphrase: str = Field(
        default="",
        description="개인키 passphrase (개인키 없으면 비밀번호로 사용)",
    )
    private_key: str = Field(default="", description="개인키 파일 경로")
    connect_timeout: float = Field(
        default=20.0,
        ge=1.0,
        le=300.0,
        description="연결/인증 타임아웃 (초)",
    )
    keepalive_interval: int = Field(
        default=30,
        ge=0,
        le=3600,
        description="SSH keep-alive 간격 (초, 0이면 비활성화)",
    )

    # === 경로 설정 ===
    upload_path: str = Field(default="", description="원격 업로드 루트 경로")
    output_path: str = Field(default="dist", description="로컬 빌드 출력 경로")

    # === 부가 기능 ===
    domain: str | None = Field(default=None, description="미리보기 도메인")
    open_domain: bool = Field(
        default=False,
        description="연결 시 미리보기 도메인을 브라우저로 열기",
    )
    upload_manifest_file: bool = Field(
        default=False,
        description="빌드 완료마다 매니페스트 파일 업로드",
    )
    manifest_file_name: str = Field(
        default="mix-manifest.json",
        description="매니페스트 파일명 (출력 경로 기준)",
    )

    # === 감시 설정 ===
    watch: bool = Field(default=True, description="연속 감시 모드")
    watch_debounce: int = Field(
        default=50,
        ge=1,
        le=10000,
        description="파일 변경 묶음 대기 시간 (ms)",
    )

    # === 로깅 설정 ===
    log_level: str = Field(
        default="INFO",
        description="로그 레벨 (DEBUG, INFO, WARNING, ERROR)",
    )

    @property
    def is_development(self) -> bool:
        """development 모드 여부."""
        return self.mode == BuildMode.DEVELOPMENT.value

    @property
    def credentials(self) -> ConnectionCredentials:
        """연결 정보."""
        return ConnectionCredentials(
            host=self.host,
            port=self.port,
            username=self.username,
            passphrase=self.passphrase,
            private_key=self.private_key,
        )

    @property
    def full_output_path(self) -> Path:
        """출력 경로 절대 경로."""
        return Path(self.output_path).expanduser().resolve()

    @property
    def preview_url(self) -> str | None:
        """미리보기 URL (도메인 미설정 시 None)."""
        if not self.domain:
            return None
        return f"https://{self.domain}"

    def missing_connection_fields(self) -> list[str]:
        """누락된 연결 필수값 목록.

        host, port, username 은 필수이며 인증 수단(private_key, passphrase)은
        둘 중 하나만 있어도 됩니다. 둘 다 없으면 각각 누락으로 보고합니다.

        Returns:
            누락된 필드명 리스트 (모두 있으면 빈 리스트)
        """
        missing = [
            name
            for name in ("host", "port", "username")
            if not getattr(self, name)
        ]
        if not self.private_key and not self.passphrase:
            missing.extend(["private_key", "passphrase"])
        return missing

    def to_dict(self) -> dict[str, Any]:
        """설정을 딕셔너리로 변환 (민감 정보 마스킹)."""
        data = self.model_dump(mode="json")
        if data.get("passphrase"):
            data["passphrase"] = "***"
        return data
