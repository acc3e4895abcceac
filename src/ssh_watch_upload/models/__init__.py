"""Models 패키지.

빌드 결과, 연결 정보, 세션 상태 정의.
"""

from src.ssh_watch_upload.models.build import (
    BuildMode,
    BuildOutcome,
    ConnectionCredentials,
)
from src.ssh_watch_upload.models.session import SessionState

__all__ = [
    "BuildMode",
    "BuildOutcome",
    "ConnectionCredentials",
    "SessionState",
]
