"""
Tests for the command line entry point.
"""
import json
from unittest.mock import MagicMock

import pytest

import attendance_nft.__main__ as cli
from attendance_nft.config import Settings
from attendance_nft.exceptions import ProviderError
from tests.test_helpers import ALICE, BOB


@pytest.fixture(autouse=True)
def _settings(monkeypatch, tmp_path):
    settings = Settings(static_dir=str(tmp_path), port=4321)
    monkeypatch.setattr(cli.Settings, "from_env", classmethod(lambda cls, *a, **kw: settings))
    return settings


@pytest.fixture
def use_client(monkeypatch, client):
    monkeypatch.setattr(cli, "build_client", lambda settings: client)
    return client


def test_mint_command(use_client, capsys):
    assert cli.main(["mint", ALICE, "Attendance for 1 Jan 2024"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["success"] is True
    assert output["tokenId"] == "0"
    assert output["transactionHash"].startswith("0x")


def test_metadata_command(use_client, capsys):
    use_client.mint_attendance(ALICE, "Attendance for 1 Jan 2024")

    assert cli.main(["metadata", "0"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["name"] == "Attendance NFT #0"
    assert output["description"] == "Attendance for 1 Jan 2024"


def test_owned_command(use_client, capsys):
    use_client.mint_attendance(BOB, "b")
    use_client.mint_attendance(ALICE, "a")

    assert cli.main(["owned", ALICE]) == 0
    assert json.loads(capsys.readouterr().out) == ["1"]


def test_chain_error_exit_code(monkeypatch, caplog):
    client = MagicMock()
    client.owned_tokens.side_effect = ProviderError("node down")
    monkeypatch.setattr(cli, "build_client", lambda settings: client)

    assert cli.main(["owned", ALICE]) == 1
    assert any("provider: node down" in msg for msg in caplog.messages)


def test_missing_configuration_exit_code():
    """The real build_client refuses to start without a key and contract"""
    assert cli.main(["metadata", "0"]) == 2


def test_serve_command(monkeypatch, _settings):
    app = MagicMock()
    create_app = MagicMock(return_value=app)
    monkeypatch.setattr(cli, "create_app", create_app)

    assert cli.main(["serve", "--host", "127.0.0.1"]) == 0

    create_app.assert_called_once_with(_settings)
    app.run.assert_called_once_with(host="127.0.0.1", port=4321)


def test_serve_port_override(monkeypatch):
    app = MagicMock()
    monkeypatch.setattr(cli, "create_app", MagicMock(return_value=app))

    cli.main(["serve", "--port", "9000"])

    app.run.assert_called_once_with(host="0.0.0.0", port=9000)


def test_requires_command():
    with pytest.raises(SystemExit):
        cli.main([])
