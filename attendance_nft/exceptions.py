"""
Exceptions for the Attendance NFT relay.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """
    Machine-readable error kinds reported at the HTTP and session boundaries.

    Callers use the kind to decide what to do next: retry ``PROVIDER`` and
    ``TIMEOUT``, surface ``TRANSACTION`` to the user, reconcile
    ``TOKEN_ID_NOT_FOUND`` by re-querying chain state, and treat ``READ`` as
    not-found.
    """
    PROVIDER = "provider"
    TIMEOUT = "timeout"
    TRANSACTION = "transaction"
    TOKEN_ID_NOT_FOUND = "token_id_not_found"
    READ = "read"
    INVALID_REQUEST = "invalid_request"
    SESSION = "session"
    INTERNAL = "internal"


class AttendanceNFTError(Exception):
    """Base exception for all Attendance NFT errors."""
    kind = ErrorKind.INTERNAL


class ProviderError(AttendanceNFTError):
    """Raised when the chain node or wallet provider cannot be reached."""
    kind = ErrorKind.PROVIDER


class WalletNotFoundError(ProviderError):
    """Raised when no wallet provider is available. Not retryable."""
    pass


class ChainTimeoutError(ProviderError):
    """Raised when a chain call does not complete within the configured timeout."""
    kind = ErrorKind.TIMEOUT


class TransactionError(AttendanceNFTError):
    """Raised when a transaction is rejected, reverted, or cannot be signed."""
    kind = ErrorKind.TRANSACTION

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class TokenIdNotFoundError(AttendanceNFTError):
    """
    Raised when a mint transaction was confirmed but no zero-address
    Transfer event identifying the new token could be found in its receipt.
    """
    kind = ErrorKind.TOKEN_ID_NOT_FOUND

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class TokenReadError(AttendanceNFTError):
    """Raised when a metadata or ownership query fails."""
    kind = ErrorKind.READ

    def __init__(self, message: str, token_id: Optional[str] = None):
        self.token_id = token_id
        super().__init__(message)


class InvalidRequestError(AttendanceNFTError):
    """Raised when an HTTP request body is malformed."""
    kind = ErrorKind.INVALID_REQUEST


class SessionStateError(AttendanceNFTError):
    """Raised when a wallet session operation is not valid in its current state."""
    kind = ErrorKind.SESSION
