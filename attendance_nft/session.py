"""
Wallet session: connects a wallet, mints attendance tokens directly against
the chain and keeps the connected account's token gallery.

The session is a small state machine::

    DISCONNECTED --connect()--> CONNECTING --accounts + gallery--> CONNECTED
    CONNECTED --mint()--> MINTING --confirmed or failed--> CONNECTED
    CONNECTED --disconnect() / accountsChanged([])--> DISCONNECTED

A ``chainChanged`` wallet event invalidates everything and reconnects.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Optional
from zoneinfo import ZoneInfo

from web3 import Web3

from .client import AttendanceClient
from .config import DEFAULT_TIMEZONE
from .exceptions import ProviderError, SessionStateError, WalletNotFoundError
from .gallery import TokenGallery
from .models import MintResult
from .wallet import ACCOUNTS_CHANGED, CHAIN_CHANGED, WalletProvider

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Web3, str], AttendanceClient]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    MINTING = "minting"


def format_attendance_time(moment: datetime) -> str:
    """Format a moment like ``1 January 2024 at 10:15:30 am``."""
    hour = moment.hour % 12 or 12
    meridiem = "am" if moment.hour < 12 else "pm"
    return f"{moment.day} {moment:%B} {moment.year} at {hour}:{moment:%M:%S} {meridiem}"


def attendance_metadata(moment: datetime, tz: str = DEFAULT_TIMEZONE) -> str:
    """Metadata string recorded for an attendance minted at ``moment``."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(ZoneInfo(tz))
    return f"Attendance for {format_attendance_time(moment)}"


class WalletSession:
    """
    Client-side session for one wallet.

    Args:
        wallet: Wallet provider capability, or None when no wallet is installed
        contract_address: Deployed AttendanceNFT contract address
        tz: Timezone used for mint-time metadata
        clock: Returns the current time (defaults to UTC now)
        on_reload: Called on ``chainChanged`` (defaults to :meth:`reload`)
        client_factory: Builds the contract client for a connected account
        timeout: Chain call timeout in seconds for the default client factory
    """

    def __init__(
        self,
        wallet: Optional[WalletProvider],
        contract_address: str,
        tz: str = DEFAULT_TIMEZONE,
        clock: Optional[Callable[[], datetime]] = None,
        on_reload: Optional[Callable[[], None]] = None,
        client_factory: Optional[ClientFactory] = None,
        timeout: int = 30,
    ):
        self.wallet = wallet
        self.contract_address = contract_address
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._on_reload = on_reload or self.reload
        self._client_factory = client_factory or (
            lambda w3, account: AttendanceClient.from_web3(w3, contract_address, account, timeout=timeout)
        )

        self.state = SessionState.DISCONNECTED
        self.account: Optional[str] = None
        self.client: Optional[AttendanceClient] = None
        self.gallery: Optional[TokenGallery] = None
        self.error: Optional[Exception] = None
        self.last_minted: Optional[MintResult] = None
        self._subscribed = False

    @property
    def tokens(self) -> List[str]:
        return self.gallery.tokens if self.gallery else []

    def connect(self) -> str:
        """
        Request account access and load the account's tokens

        Returns:
            The connected account address

        Raises:
            WalletNotFoundError: If no wallet provider is available
            SessionStateError: If the session is not disconnected
            ProviderError: If the wallet grants no account or cannot be reached
            TokenReadError: If the ownership scan fails
        """
        if self.wallet is None:
            self.error = WalletNotFoundError(
                "No wallet detected. Please install a wallet to use this application."
            )
            raise self.error
        if self.state is not SessionState.DISCONNECTED:
            raise SessionStateError(f"Cannot connect while {self.state.value}")

        self.state = SessionState.CONNECTING
        self.error = None
        try:
            accounts = self.wallet.request_accounts()
            if not accounts:
                raise ProviderError("Wallet did not grant access to any account")
            self._enter_connected(accounts[0])
        except Exception as e:
            logger.error(f"Failed to connect wallet: {e}")
            self._reset()
            self.error = e
            raise

        self._subscribe()
        return self.account

    def disconnect(self) -> None:
        """Forget the account and all cached tokens. Wallet permissions are untouched."""
        self._unsubscribe()
        self._reset()
        self.error = None

    def reload(self) -> None:
        """Drop all state and connect again from scratch."""
        self.disconnect()
        self.connect()

    def close(self) -> None:
        self._unsubscribe()

    def mint(self) -> MintResult:
        """
        Mint an attendance token to the connected account

        The metadata records the current time; on success the token is added
        to the gallery with that metadata cached and expanded.

        Raises:
            SessionStateError: If no account is connected
            AttendanceNFTError: If minting fails (see AttendanceClient.mint_attendance)
        """
        if self.state is not SessionState.CONNECTED:
            raise SessionStateError("No account connected")

        self.state = SessionState.MINTING
        self.error = None
        try:
            metadata = attendance_metadata(self._clock(), self.tz)
            result = self.client.mint_attendance(self.account, metadata)
        except Exception as e:
            logger.error(f"Error minting NFT: {e}")
            self.error = e
            raise
        finally:
            self.state = SessionState.CONNECTED

        self.gallery.add_minted(result.token_id, metadata)
        self.last_minted = result
        return result

    def toggle_metadata(self, token_id: str) -> bool:
        """
        Show or hide a token's metadata, fetching it on first display

        Returns:
            True if the token's metadata is now shown
        """
        if self.state is not SessionState.CONNECTED:
            raise SessionStateError("No account connected")
        try:
            return self.gallery.toggle(token_id)
        except Exception as e:
            logger.error(f"Error getting metadata for token {token_id}: {e}")
            self.error = e
            raise

    def handle_accounts_changed(self, accounts: List[str]) -> None:
        """Wallet event: the selected accounts changed."""
        if not accounts:
            logger.info("Wallet reported no accounts, disconnecting")
            self.disconnect()
            return

        logger.info(f"Wallet account changed to {accounts[0]}")
        self.error = None
        try:
            self._enter_connected(accounts[0])
        except Exception as e:
            logger.error(f"Failed to switch account: {e}")
            self.disconnect()
            self.error = e

    def handle_chain_changed(self, chain_id: Any) -> None:
        """Wallet event: the wallet switched chains."""
        logger.info(f"Wallet switched to chain {chain_id}, reloading session")
        try:
            self._on_reload()
        except Exception as e:
            logger.error(f"Failed to reload after chain change: {e}")
            self.error = e

    def _enter_connected(self, account: str) -> None:
        self.state = SessionState.CONNECTING
        if self.gallery:
            self.gallery.clear()
        self.account = account
        self.client = self._client_factory(self.wallet.web3, account)
        self.gallery = TokenGallery(self.client)
        self.gallery.reload(account)
        self.state = SessionState.CONNECTED

    def _reset(self) -> None:
        if self.gallery:
            self.gallery.clear()
        self.state = SessionState.DISCONNECTED
        self.account = None
        self.client = None
        self.gallery = None
        self.last_minted = None

    def _subscribe(self) -> None:
        if self._subscribed:
            return
        self.wallet.on(ACCOUNTS_CHANGED, self.handle_accounts_changed)
        self.wallet.on(CHAIN_CHANGED, self.handle_chain_changed)
        self._subscribed = True

    def _unsubscribe(self) -> None:
        if not self._subscribed:
            return
        self.wallet.remove_listener(ACCOUNTS_CHANGED, self.handle_accounts_changed)
        self.wallet.remove_listener(CHAIN_CHANGED, self.handle_chain_changed)
        self._subscribed = False
