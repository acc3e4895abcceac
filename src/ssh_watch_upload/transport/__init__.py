"""원격 전송 모듈."""

from .ssh_client import SSHConnectionError, SSHTransport, TransferError

__all__ = ["SSHTransport", "SSHConnectionError", "TransferError"]
