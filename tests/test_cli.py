"""Smoke tests for the command-line interface.

**Feature: strategy-utils**
"""

from unittest.mock import patch

import pytest
import toml
from click.testing import CliRunner

from strategyutils.cli import cli
from strategyutils.config import CONFIG_ENV_VAR, DEFAULT_STRATEGIES
from strategyutils.errors import HttpError

from fakes import NOW, WETH, FakeMarketClient, make_candles, pool_payload, token_payload

PUNK = DEFAULT_STRATEGIES["PunkStrategy"]
BIRB = DEFAULT_STRATEGIES["BirbStrategy"]
START = NOW - 3600
START_ISO = "2023-11-13T23:00:00Z"


def _market() -> FakeMarketClient:
    tokens, candles = {}, {}
    for address, name in ((PUNK, "Punk"), (BIRB, "Birb")):
        pool = f"0xpool{name.lower()}"
        tokens[address] = token_payload(
            address,
            [pool_payload(pool, base=address, quote=WETH)],
            name=f"{name}Strategy",
            price_usd="1",
            normalized_total_supply="1000",
        )
        candles[pool] = make_candles(START, 10, 3600)
    return FakeMarketClient(tokens=tokens, candles=candles)


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    return path


@pytest.fixture
def runner():
    return CliRunner()


class TestSetupCommands:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("init", "strategies", "columns", "info", "prices", "compare"):
            assert name in result.output

    def test_init_writes_template(self, runner, config_path):
        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert config_path.exists()
        assert toml.load(config_path)["api"]["network"] == "eth"

        again = runner.invoke(cli, ["init"])
        assert "already exists" in again.output

    def test_strategies(self, runner, config_path):
        result = runner.invoke(cli, ["strategies"])
        assert result.exit_code == 0
        assert "PunkStrategy" in result.output
        assert "ToadzStrategy" in result.output

    def test_columns_hide_and_show(self, runner, config_path):
        result = runner.invoke(cli, ["columns", "--hide", "unix,volume"])
        assert result.exit_code == 0
        assert toml.load(config_path)["view"]["hidden_columns"] == ["unix", "volume"]

        result = runner.invoke(cli, ["columns", "--show-all"])
        assert toml.load(config_path)["view"]["hidden_columns"] == []

    def test_columns_rejects_unknown(self, runner, config_path):
        result = runner.invoke(cli, ["columns", "--hide", "rsi"])
        assert result.exit_code == 1
        assert "Unknown columns" in result.output


class TestPrices:
    def test_table_and_rate_meter(self, runner, config_path, tmp_path):
        client = _market()
        chart = tmp_path / "chart.html"

        with patch("strategyutils.cli.prices.make_client", return_value=client):
            result = runner.invoke(
                cli,
                ["prices", "punkstrategy", "-s", "1h", "-n", "3", "--start", START_ISO, "--chart", str(chart)],
            )

        assert result.exit_code == 0, result.output
        assert "Done. 3 rows shown." in result.output
        assert "API calls (60s): 2/30" in result.output
        assert chart.exists()

        request = client.ohlcv_requests[0]
        assert request.before_timestamp == START + 2 * 3600

    def test_failure_exits_nonzero(self, runner, config_path):
        client = _market()
        client.errors[PUNK] = HttpError(503, "/tokens")

        with patch("strategyutils.cli.prices.make_client", return_value=client):
            result = runner.invoke(cli, ["prices", "punkstrategy", "--start", START_ISO])

        assert result.exit_code == 1
        assert "HTTP 503" in result.output

    def test_unknown_token(self, runner, config_path):
        result = runner.invoke(cli, ["prices", "dogestrategy"])
        assert result.exit_code == 1
        assert "Unknown token" in result.output

    def test_bad_series(self, runner, config_path):
        result = runner.invoke(cli, ["prices", "punkstrategy", "--series", "close,rsi"])
        assert result.exit_code == 2
        assert "rsi" in result.output

    def test_bad_start(self, runner, config_path):
        result = runner.invoke(cli, ["prices", "punkstrategy", "--start", "yesterday"])
        assert result.exit_code == 2

    def test_unaligned_start(self, runner, config_path):
        client = _market()

        with patch("strategyutils.cli.prices.make_client", return_value=client):
            result = runner.invoke(
                cli, ["prices", "punkstrategy", "-s", "1h", "-n", "3", "--start", "2023-11-13T23:13:20Z"]
            )

        assert result.exit_code == 0, result.output
        assert "Done. 3 rows shown." in result.output
        assert client.ohlcv_requests[0].before_timestamp == START + 2 * 3600

    def test_info_uses_one_request(self, runner, config_path):
        client = _market()
        with patch("strategyutils.cli.prices.make_client", return_value=client):
            result = runner.invoke(cli, ["info", "birbstrategy"])

        assert result.exit_code == 0, result.output
        assert "BirbStrategy" in result.output
        assert client.ohlcv_requests == []
        assert "API calls (60s): 1/30" in result.output

    def test_info_failure(self, runner, config_path):
        client = _market()
        client.errors[BIRB] = HttpError(404, "/tokens")
        with patch("strategyutils.cli.prices.make_client", return_value=client):
            result = runner.invoke(cli, ["info", "birbstrategy"])

        assert result.exit_code == 1
        assert "HTTP 404" in result.output


class TestCompare:
    def test_partial_load(self, runner, config_path):
        client = _market()
        client.errors[BIRB] = HttpError(429, "/tokens")

        with patch("strategyutils.cli.compare.make_client", return_value=client):
            result = runner.invoke(
                cli,
                ["compare", "punkstrategy", "birbstrategy", "-n", "3", "--start", START_ISO],
            )

        assert result.exit_code == 0, result.output
        assert "Done. 1/2 tokens loaded, 3 points." in result.output
        assert "Skipped: BirbStrategy." in result.output

    def test_unaligned_start_keeps_points(self, runner, config_path):
        client = _market()

        with patch("strategyutils.cli.compare.make_client", return_value=client):
            result = runner.invoke(
                cli,
                ["compare", "punkstrategy", "birbstrategy", "-n", "3", "--start", "2023-11-13T23:13:20Z"],
            )

        assert result.exit_code == 0, result.output
        assert "Done. 2/2 tokens loaded, 3 points." in result.output
        assert "Short data" not in result.output

    def test_all_failed(self, runner, config_path):
        client = _market()
        client.errors[PUNK] = HttpError(500, "/tokens")

        with patch("strategyutils.cli.compare.make_client", return_value=client):
            result = runner.invoke(cli, ["compare", "punkstrategy", "--start", START_ISO])

        assert result.exit_code == 1
        assert "no tokens could be loaded" in result.output

    def test_tab_must_be_compared(self, runner, config_path):
        result = runner.invoke(cli, ["compare", "punkstrategy", "--tab", "birbstrategy"])
        assert result.exit_code == 1
        assert "not one of the compared tokens" in result.output
