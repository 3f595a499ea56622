"""
Tests for the RpcWallet provider.
"""
from unittest.mock import MagicMock, PropertyMock

import pytest
import requests

from attendance_nft.exceptions import ChainTimeoutError, ProviderError
from attendance_nft.wallet import ACCOUNTS_CHANGED, CHAIN_CHANGED, RpcWallet
from tests.test_helpers import ALICE, BOB, InMemoryChain


def test_requires_connection():
    with pytest.raises(ValueError, match="rpc_url or w3"):
        RpcWallet()


def test_request_accounts():
    chain = InMemoryChain(accounts=[ALICE, BOB])
    assert RpcWallet(w3=chain.w3).request_accounts() == [ALICE, BOB]


@pytest.mark.parametrize("error, expected", [
    (requests.ConnectionError("refused"), ProviderError),
    (requests.ConnectTimeout("slow"), ChainTimeoutError),
])
def test_request_accounts_errors(error, expected):
    mock_w3 = MagicMock()
    type(mock_w3.eth).accounts = PropertyMock(side_effect=error)

    with pytest.raises(expected):
        RpcWallet(w3=mock_w3).request_accounts()


def test_emit_delivers_to_listeners():
    wallet = RpcWallet(w3=InMemoryChain().w3)
    received = []
    wallet.on(ACCOUNTS_CHANGED, received.append)
    wallet.on(CHAIN_CHANGED, lambda chain_id: received.append(("chain", chain_id)))

    wallet.emit(ACCOUNTS_CHANGED, [BOB])
    wallet.emit(CHAIN_CHANGED, "0x1")
    wallet.emit("disconnect", None)

    assert received == [[BOB], ("chain", "0x1")]


def test_remove_listener():
    wallet = RpcWallet(w3=InMemoryChain().w3)
    handler = MagicMock()
    wallet.on(ACCOUNTS_CHANGED, handler)
    wallet.remove_listener(ACCOUNTS_CHANGED, handler)
    wallet.remove_listener(ACCOUNTS_CHANGED, handler)

    wallet.emit(ACCOUNTS_CHANGED, [ALICE])

    handler.assert_not_called()
    assert wallet.listener_count(ACCOUNTS_CHANGED) == 0
