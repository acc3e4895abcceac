"""빌드/연결 데이터 모델."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class BuildMode(str, Enum):
    """빌드 모드."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    NONE = "none"


@dataclass(frozen=True)
class ConnectionCredentials:
    """SSH 연결 정보.

    Attributes:
        host: 원격 호스트
        port: SSH 포트
        username: 사용자명
        passphrase: 개인키 passphrase 또는 비밀번호
        private_key: 개인키 파일 경로
    """

    host: str
    port: int | None
    username: str
    passphrase: str = ""
    private_key: str = ""

    def __repr__(self) -> str:
        return (
            f"ConnectionCredentials(host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, private_key={self.private_key!r})"
        )


@dataclass(frozen=True)
class BuildOutcome:
    """빌드 1회의 결과.

    Attributes:
        full_hash: 빌드 식별 해시 (fingerprint)
        emitted_artifact_identifiers: 출력된 산출물 상대 경로 집합
        is_watch_mode_continuous: 연속 감시 모드 여부
    """

    full_hash: str
    emitted_artifact_identifiers: frozenset[str] = field(default_factory=frozenset)
    is_watch_mode_continuous: bool = False
