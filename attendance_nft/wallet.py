"""
Wallet provider capability used by the wallet session.

A wallet provider grants access to accounts, exposes a Web3 connection whose
provider signs for those accounts, and notifies listeners when the selected
accounts or the chain change.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol

import requests
from web3 import Web3

from .exceptions import ChainTimeoutError, ProviderError

logger = logging.getLogger(__name__)

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"

Handler = Callable[[Any], None]


class WalletProvider(Protocol):
    """Protocol for wallet providers injected into a WalletSession"""
    web3: Web3

    def request_accounts(self) -> List[str]:
        """Ask the wallet for account access and return the granted accounts"""
        ...

    def on(self, event: str, handler: Handler) -> None:
        ...

    def remove_listener(self, event: str, handler: Handler) -> None:
        ...


class RpcWallet:
    """
    Wallet backed by a JSON-RPC node that manages its own accounts.

    Suitable for local development chains (Ganache, Hardhat, Anvil) whose
    unlocked accounts sign ``eth_sendTransaction`` requests. Hosts forward
    account and chain changes with :meth:`emit`.
    """

    def __init__(self, rpc_url: Optional[str] = None, w3: Optional[Web3] = None, timeout: int = 30):
        if w3 is None:
            if not rpc_url:
                raise ValueError("Either rpc_url or w3 must be provided")
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self.web3 = w3
        self._listeners: Dict[str, List[Handler]] = {}
        self._lock = threading.RLock()

    def request_accounts(self) -> List[str]:
        """
        Return the node's accounts

        Raises:
            ProviderError: If the node cannot be reached
            ChainTimeoutError: If the node does not answer in time
        """
        try:
            accounts = list(self.web3.eth.accounts)
        except requests.Timeout as e:
            raise ChainTimeoutError(f"Wallet did not answer account request: {e}") from e
        except requests.ConnectionError as e:
            raise ProviderError(f"Cannot reach wallet provider: {e}") from e
        logger.debug(f"Wallet granted {len(accounts)} account(s)")
        return accounts

    def on(self, event: str, handler: Handler) -> None:
        with self._lock:
            self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._listeners.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))

    def emit(self, event: str, payload: Any) -> None:
        """Deliver a wallet event to every registered listener."""
        with self._lock:
            handlers = list(self._listeners.get(event, []))
        for handler in handlers:
            handler(payload)
