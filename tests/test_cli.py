"""Tests for the command-line interface."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from chainagg import __version__
from chainagg.cli import app
from chainagg.core.fixed_point import ONE

runner = CliRunner()

T0 = 1_700_000_000


@pytest.fixture
def workspace(tmp_path, monkeypatch, addr):
    """Working directory with settings, chain state and an event file."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "settings.yaml").write_text(
        yaml.dump(
            {
                "database": {"url": f"sqlite:///{tmp_path / 'chainagg.db'}"},
                "protocol": {
                    "stable_coin": addr.stable,
                    "gov_token": addr.gov,
                    "price_feed": addr.price_feed,
                },
            }
        )
    )
    (tmp_path / "state.yaml").write_text(
        yaml.dump(
            {
                "stable_coin": addr.stable,
                "tokens": {
                    addr.stable: {"symbol": "JUSD", "price": ONE},
                    addr.weth: {"symbol": "WETH", "price": 2000 * ONE},
                },
                "pairs": {
                    addr.pair: {
                        "token0": addr.weth,
                        "token1": addr.stable,
                        "reserve0": 10 * ONE,
                        "reserve1": 20_000 * ONE,
                    }
                },
            }
        )
    )
    events = [
        {"kind": "price_feed_initialized", "timestamp": T0, "address": addr.price_feed},
        {
            "kind": "debt_token_added",
            "timestamp": T0,
            "address": addr.token_manager,
            "token": addr.stable,
            "oracle_id": "0x01",
        },
        {
            "kind": "coll_token_added",
            "timestamp": T0,
            "address": addr.token_manager,
            "token": addr.weth,
            "oracle_id": "0x02",
            "supported_collateral_ratio": ONE,
        },
        {
            "kind": "pair_created",
            "timestamp": T0,
            "address": addr.factory,
            "token0": addr.weth,
            "token1": addr.stable,
            "pair": addr.pair,
        },
        {
            "kind": "pair_sync",
            "timestamp": T0 + 120,
            "address": addr.pair,
            "reserve0": 10 * ONE,
            "reserve1": 21_000 * ONE,
        },
    ]
    (tmp_path / "events.jsonl").write_text(
        "\n".join(json.dumps(e) for e in events) + "\n"
    )
    yield tmp_path

    from chainagg.data.database import close_db

    close_db()


class TestCli:
    """Tests for CLI commands."""

    def test_version(self):
        """Test the version command."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_show(self, workspace):
        """Test a configuration section is printed."""
        result = runner.invoke(app, ["config", "show", "aggregation"])

        assert result.exit_code == 0
        assert "Bucket span" in result.output
        assert "Database" not in result.output

    def test_replay_in_memory(self, workspace):
        """Test replaying into memory prints a summary."""
        result = runner.invoke(
            app, ["replay", "events.jsonl", "--state", "state.yaml", "--memory"]
        )

        assert result.exit_code == 0, result.output
        assert "Closed candles:  2" in result.output
        assert "Replay complete" in result.output
        assert not (workspace / "chainagg.db").exists()

    def test_replay_into_database(self, workspace, addr):
        """Test a replay is persisted and queryable."""
        result = runner.invoke(app, ["replay", "events.jsonl", "--state", "state.yaml"])
        assert result.exit_code == 0, result.output

        from chainagg.data.repository import CandleRepository

        candles = CandleRepository().get_candles(addr.weth, 1)
        assert [c.timestamp for c in candles] == [T0, T0 + 60]
        assert candles[0].close == 2000 * ONE

        result = runner.invoke(app, ["candles", addr.weth, "-r", "1"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["candles", addr.weth, "-r", "60"])
        assert "No candles" in result.output

    def test_replay_stops_on_unknown_event(self, workspace, addr):
        """Test an unknown event kind aborts the replay."""
        (workspace / "bad.jsonl").write_text(
            json.dumps({"kind": "nope", "timestamp": T0, "address": addr.pair}) + "\n"
        )

        result = runner.invoke(app, ["replay", "bad.jsonl", "--memory"])

        assert result.exit_code == 1
        assert "Replay stopped" in result.output

    def test_history_unknown_series(self, workspace):
        """Test an unknown history series is rejected."""
        result = runner.invoke(app, ["history", "nope"])

        assert result.exit_code == 1
        assert "Unknown series" in result.output

    def test_queries_accept_mixed_case_addresses(self, workspace, addr):
        """Test checksummed addresses find the lowercase stored rows."""
        result = runner.invoke(app, ["replay", "events.jsonl", "--state", "state.yaml"])
        assert result.exit_code == 0, result.output
        mixed = addr.stable.upper().replace("0X", "0x")

        result = runner.invoke(app, ["averages", mixed])
        assert result.exit_code == 0
        assert "No rolling averages" not in result.output
        assert "total_supply_usd" in result.output

        result = runner.invoke(app, ["candles", mixed, "-r", "1"])
        assert result.exit_code == 0
        assert f"No candles for {addr.stable} at 1m" in result.output
