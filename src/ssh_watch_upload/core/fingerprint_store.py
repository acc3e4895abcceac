"""산출물별 마지막 동기화 fingerprint 저장소."""

from __future__ import annotations


class FingerprintStore:
    """인메모리 fingerprint 저장소.

    산출물 식별자(출력 경로 기준 상대 경로) -> 마지막으로 동기화 판단을 내린
    빌드 해시. 레코드는 처음 관측될 때 생성되며 삭제되지 않습니다.
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}

    def lookup(self, identifier: str) -> str | None:
        """저장된 fingerprint 조회 (없으면 None)."""
        return self._records.get(identifier)

    def record(self, identifier: str, fingerprint: str) -> None:
        """fingerprint 기록."""
        self._records[identifier] = fingerprint

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._records

    def __len__(self) -> int:
        return len(self._records)
