"""세션 상태 모델."""

from __future__ import annotations

from enum import Enum


class SessionState(Enum):
    """연결 세션 상태.

    UNCONNECTED -> CONNECTING -> CONNECTED -> DISPOSED
    DISPOSED 는 종료 상태입니다.
    """

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISPOSED = "disposed"
