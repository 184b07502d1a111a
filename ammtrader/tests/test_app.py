"""Tests for the command-line client."""

import logging
from unittest.mock import patch

import aiohttp
import pytest

from ammtrader.app import build_signer, main, render_catalog, render_view, setup_logging
from ammtrader.config import AppConfig
from ammtrader.errors import ConfigurationError
from ammtrader.derived import derive
from ammtrader.ledger import LocalAccountSigner, NodeSigner
from ammtrader.types import MAX_UINT256, Outcome, QueryKey, QueryValue, SessionState
from ammtrader.clock import Clock
from ammtrader.tests.fakes import MARKET, NOW, OWNER, TOKEN, FakeTime, declined, make_market

VALID_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


def valid_config(**changes) -> AppConfig:
    return AppConfig(token_address=TOKEN, market_address=MARKET, **changes)


def loaded_state(**changes) -> SessionState:
    market = make_market(question="Rain tomorrow?", end_time=NOW + 59)
    reads = {
        QueryKey.market_count(): QueryValue(QueryKey.market_count(), 1, seq=1),
        QueryKey.market_detail(0): QueryValue(QueryKey.market_detail(0), market, seq=1),
        QueryKey.allowance(OWNER, MARKET): QueryValue(QueryKey.allowance(OWNER, MARKET), 0, seq=1),
    }
    return SessionState(TOKEN, MARKET, owner=OWNER, now=NOW, reads=reads, **changes)


class TestRender:
    """Text rendering of the derived view."""

    def test_render_view(self):
        text = render_view(derive(loaded_state()), valid_config())

        assert "Market #0: Rain tomorrow?" in text
        assert "Trading open — ends in 00:00:59" in text
        assert "Allowance  0" in text
        assert "Price      YES —  NO —" in text
        assert "Action     Approve" in text

    def test_render_hash_and_error(self):
        state = loaded_state(last_tx_hash="0xabc", last_error="Buy failed")
        text = render_view(derive(state), valid_config())

        assert "View transaction: https://sepolia.basescan.org/tx/0xabc" in text
        assert "Error: Buy failed" in text

    def test_render_catalog(self):
        assert render_catalog(derive(loaded_state())) == "* #0: Rain tomorrow?"
        assert render_catalog(derive(SessionState(TOKEN, MARKET))) == "No markets loaded"


class TestSetupLogging:

    def test_transport_loggers_quiet_unless_debug(self):
        setup_logging("ammtrader", "INFO")
        assert logging.getLogger("web3").level == logging.WARNING
        assert logging.getLogger("aiohttp").level == logging.WARNING

        setup_logging("ammtrader", "debug")
        assert logging.getLogger("web3").level == logging.DEBUG

    def test_unknown_level(self):
        with pytest.raises(ConfigurationError):
            setup_logging("ammtrader", "LOUD")


class TestBuildSigner:

    def test_private_key_wins(self):
        signer = build_signer(valid_config(private_key=VALID_KEY, signer_address=OWNER))
        assert isinstance(signer, LocalAccountSigner)

    def test_node_signer_from_address(self):
        assert isinstance(build_signer(valid_config(signer_address=OWNER)), NodeSigner)

    def test_read_only(self):
        assert build_signer(valid_config()) is None


class TestMain:
    """Commands run end to end against the in-memory ledger."""

    def run(self, argv, ledger, config=None):
        config = config or valid_config(clock_interval_s=0.01)
        with patch("ammtrader.app.AppConfig.from_env_file", return_value=config), \
                patch("ammtrader.app.build_ledger", return_value=ledger), \
                patch("ammtrader.app.Clock", lambda interval: Clock(interval, time_fn=FakeTime())):
            return main(argv)

    def test_invalid_config_exits_2(self, ledger):
        assert self.run(["status"], ledger, config=AppConfig()) == 2

    def test_unknown_log_level_exits_2(self, ledger):
        assert self.run(["status"], ledger, config=valid_config(log_level="LOUD")) == 2

    def test_markets(self, ledger, capsys):
        ledger.add_market(make_market(1, question="Second?"))
        assert self.run(["markets"], ledger) == 0
        out = capsys.readouterr().out
        assert "#1: Second?" in out

    def test_status(self, ledger, capsys):
        assert self.run(["status", "--market", "0"], ledger) == 0
        assert "Market #0:" in capsys.readouterr().out

    def test_approve_then_buy(self, ledger, capsys):
        assert self.run(["approve"], ledger) == 0
        assert ledger.allowances[(OWNER.lower(), MARKET.lower())] == MAX_UINT256

        assert self.run(["buy", "--outcome", "no", "--amount", "5"], ledger) == 0
        assert ledger.writes[-1] == ("buy", 0, Outcome.NO, 5)
        assert "Shares     YES 0  NO 5" in capsys.readouterr().out

    def test_refused_action_exits_1(self, ledger, capsys):
        assert self.run(["claim"], ledger) == 1
        assert "Error:" in capsys.readouterr().err

    def test_declined_exits_1(self, ledger, capsys):
        ledger.decline_next = declined()
        assert self.run(["approve"], ledger) == 1
        assert "Error: User rejected the request." in capsys.readouterr().out

    def test_connection_lost_exits_1(self, ledger, capsys):
        ledger.decline_next = aiohttp.ClientConnectionError("connection reset")
        assert self.run(["approve"], ledger) == 1
        assert "Error: Approval failed" in capsys.readouterr().out

