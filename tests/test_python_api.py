# tests/test_python_api.py
"""Tests for the top-level remotescan API and the CLI."""

import json

import pymysql
import pytest
from typer.testing import CliRunner

import remotescan
from remotescan.cli.main import EXIT_CONFIG_ERROR, EXIT_RUNTIME_ERROR, app
from remotescan.config.settings import parse_config

from .conftest import FakeDriver

EXPLAIN = ["id", "select_type", "table", "type", "possible_keys", "key", "key_len", "ref", "rows", "Extra"]

RAW_CONFIG = {
    "servers": {"shop": {"address": "localhost"}},
    "user_mappings": {"shop": {"username": "app"}},
    "foreign_tables": {
        "orders": {
            "server": "shop",
            "options": {"database": "shop", "table": "orders"},
            "columns": [
                {"name": "id", "type": "int4"},
                {"name": "customer", "type": "text"},
            ],
        }
    },
}

CONFIG_YAML = """
servers:
  shop: {address: localhost}
foreign_tables:
  orders:
    server: shop
    options: {table: orders}
    columns:
      - {name: id, type: int4}
      - {name: customer, type: text}
"""


@pytest.fixture
def shop(server):
    server.add_result("SELECT * FROM orders", ["id", "customer"], [(b"1", b"acme"), (b"2", b"")])
    server.add_result(
        "EXPLAIN SELECT * FROM orders",
        EXPLAIN,
        [(b"1", b"SIMPLE", b"orders", b"ALL", None, None, None, None, b"2", None)],
    )
    return server


@pytest.fixture
def config():
    return parse_config(RAW_CONFIG)


class TestApi:
    def test_estimate(self, config, client, shop):
        est = remotescan.estimate(config, "orders", client=client)
        assert est.rows == 2
        assert est.startup_cost == 10

    def test_scan_yields_dicts(self, config, client, shop):
        rows = list(remotescan.scan(config, "orders", client=client))
        assert rows == [{"id": 1, "customer": "acme"}, {"id": 2, "customer": ""}]
        assert not shop.connections[-1].open

    def test_scan_closed_early(self, config, client, shop):
        gen = remotescan.scan(config, "orders", client=client)
        next(gen)
        gen.close()
        assert not shop.connections[-1].open

    def test_to_polars(self, config, client, shop):
        df = remotescan.to_polars(config, "orders", client=client)
        assert df.to_dicts() == [{"id": 1, "customer": "acme"}, {"id": 2, "customer": ""}]

    def test_encoding_policy_from_config(self, client, server):
        server.add_result("SELECT * FROM orders", ["id", "customer"], [(b"1", b"\xff")])
        config = parse_config({**RAW_CONFIG, "encoding_errors": "error"})
        with pytest.raises(remotescan.EncodingError):
            list(remotescan.scan(config, "orders", client=client))
        assert not server.connections[-1].open

    def test_version(self):
        assert isinstance(remotescan.__version__, str)


@pytest.fixture
def cli_env(tmp_path, monkeypatch, server):
    path = tmp_path / "remotescan.yml"
    path.write_text(CONFIG_YAML)
    monkeypatch.setattr(pymysql, "connect", FakeDriver(server).connect)
    return str(path)


class TestCli:
    runner = CliRunner()

    def test_explain(self, cli_env, shop):
        result = self.runner.invoke(app, ["explain", "orders", "-c", cli_env])
        assert result.exit_code == 0, result.output
        assert "Local server startup cost: 10" in result.output
        assert "MySQL query: SELECT * FROM orders" in result.output
        assert "Estimated rows: 2" in result.output

    def test_explain_without_costs(self, cli_env, shop):
        result = self.runner.invoke(app, ["explain", "orders", "-c", cli_env, "--no-costs"])
        assert result.exit_code == 0, result.output
        assert "startup cost" not in result.output
        assert "MySQL query" not in result.output
        assert "Estimated rows" not in result.output
        assert shop.called("execute") == []

    def test_scan_json(self, cli_env, shop):
        result = self.runner.invoke(app, ["scan", "orders", "-c", cli_env, "-o", "json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [{"id": 1, "customer": "acme"}, {"id": 2, "customer": ""}]

    def test_scan_limit_csv(self, cli_env, shop):
        result = self.runner.invoke(app, ["scan", "orders", "-c", cli_env, "-o", "csv", "-n", "1"])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["id,customer", "1,acme"]

    def test_check_config(self, cli_env):
        result = self.runner.invoke(app, ["check-config", "-c", cli_env])
        assert result.exit_code == 0, result.output
        assert "orders: SELECT * FROM orders" in result.output
        assert "Configuration OK" in result.output

    def test_unknown_table_is_config_error(self, cli_env):
        result = self.runner.invoke(app, ["scan", "missing", "-c", cli_env])
        assert result.exit_code == EXIT_CONFIG_ERROR
        assert 'foreign table "missing" does not exist' in result.output

    def test_connection_failure_is_runtime_error(self, cli_env, server):
        server.refuse = pymysql.err.OperationalError(2003, "Can't connect to MySQL server")
        result = self.runner.invoke(app, ["scan", "orders", "-c", cli_env])
        assert result.exit_code == EXIT_RUNTIME_ERROR
        assert "Connection failed: Can't connect to MySQL server" in result.output

    def test_version_flag(self):
        result = self.runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("remotescan ")
