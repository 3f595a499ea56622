"""
AttendanceClient - chain client for the AttendanceNFT contract.
"""
import logging
import threading
import urllib.parse
from typing import Any, Dict, List, Optional, Protocol, Union

import requests
from eth_account import Account
from eth_account.signers.base import BaseAccount
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from .events import find_minted_token_id, to_hex
from .exceptions import (
    AttendanceNFTError, ChainTimeoutError, ProviderError, TokenReadError, TransactionError
)
from .models import MintResult, TokenAttribute, TokenDescriptor

DEFAULT_IMAGE_BASE_URL = "https://your-image-server.com/nft-image"


class Signer(Protocol):
    """Protocol for custom signers"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...


class AttendanceClient:
    """
    Client for minting and reading attendance NFTs.

    Transactions are signed in one of three ways:
    1. With a local private key (``priv_key``)
    2. With a custom signer object (``signer``)
    3. By the provider itself, for wallet or node-managed accounts (``account``)

    Every chain call is bounded by ``timeout`` seconds.
    """

    # ABI subset of the AttendanceNFT contract
    ATTENDANCE_NFT_ABI = [
        {
            "inputs": [
                {"internalType": "address", "name": "recipient", "type": "address"},
                {"internalType": "string", "name": "metadata", "type": "string"}
            ],
            "name": "mintAttendance",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "nonpayable",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "uint256", "name": "tokenId", "type": "uint256"}],
            "name": "getTokenMetadata",
            "outputs": [{"internalType": "string", "name": "", "type": "string"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "totalSupply",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "uint256", "name": "index", "type": "uint256"}],
            "name": "tokenByIndex",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "uint256", "name": "tokenId", "type": "uint256"}],
            "name": "ownerOf",
            "outputs": [{"internalType": "address", "name": "", "type": "address"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "anonymous": False,
            "inputs": [
                {"indexed": True, "internalType": "address", "name": "from", "type": "address"},
                {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
                {"indexed": True, "internalType": "uint256", "name": "tokenId", "type": "uint256"}
            ],
            "name": "Transfer",
            "type": "event"
        }
    ]

    # Used when gas estimation fails
    DEFAULT_GAS = 500000

    def __init__(
        self,
        contract_address: str,
        rpc_url: Optional[str] = None,
        priv_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        account: Optional[str] = None,
        w3: Optional[Web3] = None,
        timeout: int = 30,
        image_base_url: str = DEFAULT_IMAGE_BASE_URL,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the AttendanceClient

        Args:
            contract_address: Deployed AttendanceNFT contract address
            rpc_url: Ethereum RPC endpoint URL (ignored when ``w3`` is given)
            priv_key: Ethereum private key used to sign transactions locally
            signer: Custom signer object (alternative to priv_key)
            account: Provider-managed account that signs via ``eth_sendTransaction``
            w3: Pre-built Web3 instance (e.g. backed by a wallet provider)
            timeout: Upper bound in seconds for RPC requests and receipt waits
            image_base_url: Base URL for token images in display descriptors
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If no signing identity or no connection is provided
            ValueError: If rpc_url doesn't use https (unless it's localhost/127.0.0.1)
        """
        if not priv_key and not signer and not account:
            raise ValueError("One of priv_key, signer or account must be provided")
        if w3 is None and not rpc_url:
            raise ValueError("Either rpc_url or w3 must be provided")

        if w3 is None:
            parsed = urllib.parse.urlparse(rpc_url)
            host = parsed.netloc.split(':')[0]
            is_local = host in ('localhost', '127.0.0.1')
            if parsed.scheme != 'https' and not is_local:
                raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

        self.rpc_url = rpc_url
        self.w3 = w3
        self.timeout = timeout
        self.image_base_url = image_base_url.rstrip('/')
        self.logger = logger or logging.getLogger(__name__)

        self.account: Optional[BaseAccount] = None
        self.signer = signer
        self.managed_account = account
        self._nonce_lock = threading.Lock()
        if priv_key:
            self.account = Account.from_key(priv_key)

        if Web3.is_address(contract_address):
            contract_address = Web3.to_checksum_address(contract_address)
        self.contract_address = contract_address
        self.contract = self.w3.eth.contract(
            address=contract_address,
            abi=self.ATTENDANCE_NFT_ABI
        )

    @classmethod
    def from_web3(cls, w3: Web3, contract_address: str, account: str, **kwargs) -> "AttendanceClient":
        """Build a client over an existing Web3 connection whose provider signs for ``account``."""
        return cls(contract_address=contract_address, w3=w3, account=account, **kwargs)

    @property
    def address(self) -> str:
        """
        Get the address transactions are sent from

        Raises:
            ValueError: If no signing identity is available
        """
        if self.account:
            return self.account.address
        elif self.signer:
            return self.signer.address
        elif self.managed_account:
            return self.managed_account
        raise ValueError("No account or signer available")

    # ------------------------------------------------------------------
    # Mint
    # ------------------------------------------------------------------

    def mint_attendance(self, recipient: str, metadata: str, gas: Optional[int] = None) -> MintResult:
        """
        Mint an attendance token and wait for it to be confirmed

        Args:
            recipient: Address that will own the new token
            metadata: Free-form attendance description stored with the token
            gas: Gas limit to use (if None, will be estimated)

        Returns:
            MintResult with the transaction hash and the new token identifier

        Raises:
            TransactionError: If the transaction is rejected, reverted or cannot be signed
            TokenIdNotFoundError: If the transaction confirmed without a mint event
            ProviderError: If the node cannot be reached
            ChainTimeoutError: If submission or confirmation exceeds the timeout
        """
        recipient = self._normalize_address(recipient)
        self.logger.debug(f"Minting attendance token for {recipient}")

        tx_hash = self._submit(recipient, metadata, gas)
        receipt = self._wait_for_receipt(tx_hash)

        if receipt.get("status") == 0:
            self.logger.error(f"Mint transaction {tx_hash} reverted")
            raise TransactionError(f"Transaction {tx_hash} was reverted", tx_hash=tx_hash)

        token_id = find_minted_token_id(self.contract, receipt, recipient)
        self.logger.info(f"Minted token {token_id} to {recipient} in {tx_hash}")
        return MintResult(transactionHash=tx_hash, tokenId=token_id)

    def _submit(self, recipient: str, metadata: str, gas: Optional[int]) -> str:
        from_address = self.address
        try:
            fn = self.contract.functions.mintAttendance(recipient, metadata)

            if self.account is None and self.signer is None:
                tx_params: Dict[str, Any] = {'from': from_address}
                if gas is not None:
                    tx_params['gas'] = gas
                tx_hash = fn.transact(tx_params)
            else:
                tx_hash = self._send_signed(fn, from_address, gas)
        except AttendanceNFTError:
            raise
        except Exception as e:
            self._raise_chain_error(e, "Failed to send transaction", TransactionError)

        tx_hash = to_hex(tx_hash)
        self.logger.info(f"Transaction sent: {tx_hash}")
        return tx_hash

    def _send_signed(self, fn: Any, from_address: str, gas: Optional[int]) -> Any:
        # Nonce allocation and broadcast stay together so concurrent mints
        # from one key never sign the same nonce.
        with self._nonce_lock:
            nonce = self.w3.eth.get_transaction_count(from_address, "pending")
            if gas is None:
                try:
                    gas = int(fn.estimate_gas({'from': from_address}) * 1.1)
                    self.logger.debug(f"Estimated gas: {gas}")
                except ContractLogicError:
                    raise
                except Exception as e:
                    gas = self.DEFAULT_GAS
                    self.logger.warning(f"Gas estimation failed, using default: {gas}. Error: {e}")

            tx = fn.build_transaction({
                'from': from_address,
                'nonce': nonce,
                'gas': gas,
                'gasPrice': self.w3.eth.gas_price,
            })
            raw_tx = self._sign(tx)
            return self.w3.eth.send_raw_transaction(raw_tx)

    def _sign(self, tx: Dict[str, Any]) -> bytes:
        try:
            if self.account:
                signed_tx = self.account.sign_transaction(tx)
            else:
                signed_tx = self.signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise TransactionError(f"Failed to sign transaction: {str(e)}") from e
        return signed_tx.raw_transaction

    def _wait_for_receipt(self, tx_hash: str) -> Any:
        try:
            return self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.timeout,
                poll_latency=0.1
            )
        except TimeExhausted as e:
            self.logger.error(f"Transaction {tx_hash} not confirmed after {self.timeout}s")
            raise ChainTimeoutError(
                f"Transaction {tx_hash} was not confirmed within {self.timeout}s"
            ) from e
        except Exception as e:
            self._raise_chain_error(e, f"Failed to confirm transaction {tx_hash}", TransactionError)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_token_metadata(self, token_id: Union[str, int]) -> str:
        """
        Read the metadata string stored for a token

        Raises:
            TokenReadError: If the identifier is malformed or the read fails
        """
        token_id = self._parse_token_id(token_id)
        return self._call("getTokenMetadata", token_id, token_id=token_id)

    def describe_token(self, token_id: Union[str, int]) -> TokenDescriptor:
        """
        Build the display descriptor for a token from its on-chain metadata

        The metadata string is reused verbatim as both the description and
        the "Attendance Date" trait; it is not checked to be date-shaped.
        """
        metadata = self.get_token_metadata(token_id)
        token_id = self._parse_token_id(token_id)
        return TokenDescriptor(
            name=f"Attendance NFT #{token_id}",
            description=metadata,
            image=f"{self.image_base_url}/{token_id}.png",
            attributes=[TokenAttribute(trait_type="Attendance Date", value=metadata)],
        )

    def total_supply(self) -> int:
        return int(self._call("totalSupply"))

    def token_by_index(self, index: int) -> int:
        return int(self._call("tokenByIndex", index))

    def owner_of(self, token_id: Union[str, int]) -> str:
        token_id = self._parse_token_id(token_id)
        return self._call("ownerOf", token_id, token_id=token_id)

    def owned_tokens(self, owner: str) -> List[str]:
        """
        List the tokens currently owned by ``owner``

        Scans every token index from 0 to totalSupply - 1 and reads each
        owner. This costs two reads per existing token.

        Returns:
            Token identifiers as decimal strings, in index order
        """
        owner = owner.lower()
        supply = self.total_supply()
        self.logger.debug(f"Scanning {supply} tokens for owner {owner}")

        token_ids = []
        for index in range(supply):
            token_id = self.token_by_index(index)
            if self.owner_of(token_id).lower() == owner:
                token_ids.append(str(token_id))
        return token_ids

    def _call(self, fn_name: str, *args: Any, token_id: Optional[int] = None) -> Any:
        try:
            return getattr(self.contract.functions, fn_name)(*args).call()
        except Exception as e:
            label = fn_name if token_id is None else f"{fn_name}({token_id})"
            self._raise_chain_error(e, f"Failed to read {label}", TokenReadError, token_id=token_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _raise_chain_error(
        self,
        error: Exception,
        message: str,
        fallback: type,
        token_id: Optional[int] = None
    ) -> None:
        """Translate a chain client exception into this package's error kinds."""
        self.logger.error(f"{message}: {error}")
        if isinstance(error, AttendanceNFTError):
            raise error
        if isinstance(error, (requests.Timeout, TimeExhausted)):
            raise ChainTimeoutError(f"{message}: request timed out after {self.timeout}s") from error
        if isinstance(error, requests.ConnectionError):
            raise ProviderError(f"{message}: cannot reach chain node ({error})") from error
        if fallback is TokenReadError:
            raise TokenReadError(
                f"{message}: {error}",
                token_id=None if token_id is None else str(token_id)
            ) from error
        raise fallback(f"{message}: {error}") from error

    @staticmethod
    def _parse_token_id(token_id: Union[str, int]) -> int:
        try:
            value = int(str(token_id).strip(), 10)
        except ValueError:
            raise TokenReadError(f"Invalid token ID: {token_id!r}", token_id=str(token_id))
        if value < 0:
            raise TokenReadError(f"Invalid token ID: {token_id!r}", token_id=str(token_id))
        return value

    @staticmethod
    def _normalize_address(address: str) -> str:
        if isinstance(address, str) and Web3.is_address(address):
            return Web3.to_checksum_address(address)
        return address
