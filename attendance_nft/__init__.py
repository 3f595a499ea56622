"""
Attendance NFT - relay service and wallet session for minting attendance tokens.
"""
from .client import AttendanceClient
from .config import Settings
from .events import TransferEvent, decode_transfer, find_minted_token_id
from .exceptions import (
    AttendanceNFTError, ChainTimeoutError, ErrorKind, InvalidRequestError, ProviderError,
    SessionStateError, TokenIdNotFoundError, TokenReadError, TransactionError,
    WalletNotFoundError
)
from .gallery import TokenGallery
from .models import MintRequest, MintResult, TokenAttribute, TokenDescriptor
from .session import SessionState, WalletSession
from .wallet import RpcWallet, WalletProvider
from .version import __version__

__all__ = [
    "AttendanceClient",
    "Settings",
    "TransferEvent",
    "decode_transfer",
    "find_minted_token_id",
    "AttendanceNFTError",
    "ChainTimeoutError",
    "ErrorKind",
    "InvalidRequestError",
    "ProviderError",
    "SessionStateError",
    "TokenIdNotFoundError",
    "TokenReadError",
    "TransactionError",
    "WalletNotFoundError",
    "TokenGallery",
    "MintRequest",
    "MintResult",
    "TokenAttribute",
    "TokenDescriptor",
    "SessionState",
    "WalletSession",
    "RpcWallet",
    "WalletProvider",
    "__version__",
]
