"""
Extraction of newly minted token identifiers from transaction receipts.

A mint is only considered successful when the receipt carries a ``Transfer``
event from the zero address. Receipt logs are decoded one at a time against the
contract's ``Transfer`` event; entries that do not decode (other events, other
contracts, ERC-20 style transfers) simply produce no result.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Optional

from eth_abi.exceptions import DecodingError
from web3 import Web3
from web3.exceptions import Web3Exception

from .exceptions import TokenIdNotFoundError

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass
class TransferEvent:
    """A decoded ``Transfer(from, to, tokenId)`` log entry."""
    from_address: str
    to_address: str
    token_id: int
    log_index: Optional[int] = None

    @property
    def is_mint(self) -> bool:
        return self.from_address.lower() == ZERO_ADDRESS


def to_hex(value: Any) -> str:
    """Render a hash that may be bytes or an already-hex string."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)


def decode_transfer(contract: Any, log: Mapping[str, Any]) -> Optional[TransferEvent]:
    """
    Decode a single log entry as a ``Transfer`` event.

    Args:
        contract: web3 contract proxy whose ABI declares ``Transfer``
        log: Raw log entry from a transaction receipt

    Returns:
        The decoded event, or None when the entry is not a decodable Transfer
    """
    try:
        event = contract.events.Transfer().process_log(log)
    except (Web3Exception, DecodingError, ValueError, KeyError, IndexError, TypeError) as e:
        logger.debug(f"Skipping log {log.get('logIndex')}: not a Transfer event ({e})")
        return None

    args = event["args"]
    return TransferEvent(
        from_address=args["from"],
        to_address=args["to"],
        token_id=int(args["tokenId"]),
        log_index=log.get("logIndex"),
    )


def iter_transfers(contract: Any, logs: Iterable[Mapping[str, Any]]) -> Iterator[TransferEvent]:
    """Yield decodable Transfer events in emission order."""
    for log in logs:
        event = decode_transfer(contract, log)
        if event is not None:
            yield event


def find_minted_token_id(
    contract: Any,
    receipt: Mapping[str, Any],
    recipient: Optional[str] = None,
) -> str:
    """
    Return the identifier of the token minted by a confirmed transaction.

    The first Transfer event from the zero address (to ``recipient``, when
    given) in log order is authoritative.

    Args:
        contract: web3 contract proxy for the attendance contract
        receipt: Confirmed transaction receipt
        recipient: Expected owner of the new token (compared case-insensitively)

    Returns:
        Token identifier as a decimal string

    Raises:
        TokenIdNotFoundError: If no matching event is present
    """
    tx_hash = to_hex(receipt.get("transactionHash", ""))
    for event in iter_transfers(contract, receipt.get("logs") or []):
        if not event.is_mint:
            continue
        if recipient is not None and event.to_address.lower() != recipient.lower():
            logger.warning(
                f"Ignoring mint event for token {event.token_id} in {tx_hash}: "
                f"recipient {event.to_address} does not match {recipient}"
            )
            continue
        return str(event.token_id)

    raise TokenIdNotFoundError(
        f"Mint transaction {tx_hash} was confirmed but no minted token ID was found in its logs",
        tx_hash=tx_hash,
    )
