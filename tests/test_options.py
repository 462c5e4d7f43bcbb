# tests/test_options.py
"""Tests for RemoteOptions and per-context option validation."""

import pytest

from remotescan.config.models import (
    OptionContext,
    RemoteOptions,
    is_valid_option,
    validate_options,
)
from remotescan.errors import ConfigurationError, InvalidOptionError


class TestRemoteOptionsDefaults:
    def test_defaults_applied(self):
        opts = RemoteOptions(table="orders")
        assert opts.address == "127.0.0.1"
        assert opts.port == 3306
        assert opts.username is None
        assert opts.database is None

    def test_port_zero_means_default(self):
        """A port of 0 falls back to 3306."""
        assert RemoteOptions(table="t", port=0).port == 3306
        assert RemoteOptions(table="t", port="0").port == 3306

    def test_port_string_is_parsed(self):
        assert RemoteOptions(table="t", port="3307").port == 3307

    def test_empty_address_means_default(self):
        assert RemoteOptions(table="t", address="").address == "127.0.0.1"


class TestTableOrQuery:
    def test_requires_table_or_query(self):
        with pytest.raises(ConfigurationError, match="either a table or a query"):
            RemoteOptions(address="db")

    def test_rejects_both(self):
        with pytest.raises(ConfigurationError, match="conflicting options"):
            RemoteOptions(table="t", query="SELECT 1")

    def test_effective_query_for_table(self):
        opts = RemoteOptions(table="orders")
        assert opts.effective_query == "SELECT * FROM orders"
        assert opts.explain_query == "EXPLAIN SELECT * FROM orders"

    def test_effective_query_for_literal_query(self):
        opts = RemoteOptions(query="SELECT id, name FROM users WHERE active = 1")
        assert opts.effective_query == "SELECT id, name FROM users WHERE active = 1"
        assert opts.explain_query == "EXPLAIN SELECT id, name FROM users WHERE active = 1"


class TestIsLocal:
    @pytest.mark.parametrize("address", ["127.0.0.1", "localhost"])
    def test_loopback_literals(self, address):
        assert RemoteOptions(table="t", address=address).is_local

    @pytest.mark.parametrize("address", ["10.0.0.5", "db.internal", "::1", "LOCALHOST"])
    def test_everything_else_is_remote(self, address):
        assert not RemoteOptions(table="t", address=address).is_local


class TestFromPairs:
    def test_folds_pairs_in_order(self):
        opts = RemoteOptions.from_pairs(
            [("table", "orders"), ("address", "a"), ("port", "3310"), ("address", "b")]
        )
        assert opts.address == "b"
        assert opts.port == 3310
        assert opts.table == "orders"

    def test_unknown_names_ignored(self):
        opts = RemoteOptions.from_pairs([("table", "t"), ("fetch_size", "100")])
        assert opts.table == "t"

    def test_redacted_masks_password(self):
        opts = RemoteOptions(table="t", password="secret")
        assert opts.redacted()["password"] == "***"


class TestValidateOptions:
    def test_valid_option_table(self):
        assert is_valid_option("address", OptionContext.SERVER)
        assert is_valid_option("password", OptionContext.USER_MAPPING)
        assert is_valid_option("table", OptionContext.FOREIGN_TABLE)
        assert not is_valid_option("table", OptionContext.SERVER)
        assert not is_valid_option("charset", OptionContext.SERVER)

    def test_invalid_option_lists_valid_ones(self):
        with pytest.raises(InvalidOptionError) as exc_info:
            validate_options([("table", "t")], OptionContext.SERVER)
        assert 'invalid option "table"' in str(exc_info.value)
        assert "address, port" in str(exc_info.value)
        assert exc_info.value.valid == ["address", "port"]

    def test_redundant_option(self):
        with pytest.raises(ConfigurationError, match=r"redundant options: port \(3307\)"):
            validate_options([("port", "3306"), ("port", "3307")], OptionContext.SERVER)

    def test_redundant_password_is_not_echoed(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_options([("password", "a"), ("password", "hunter2")], OptionContext.USER_MAPPING)
        assert "hunter2" not in str(exc_info.value)

    @pytest.mark.parametrize(
        "pairs, message",
        [
            ([("table", "t"), ("query", "SELECT 1")], "query cannot be used with table"),
            ([("query", "SELECT 1"), ("table", "t")], "table cannot be used with query"),
        ],
    )
    def test_query_and_table_conflict(self, pairs, message):
        with pytest.raises(ConfigurationError, match=message):
            validate_options(pairs, OptionContext.FOREIGN_TABLE)

    def test_valid_set_passes(self):
        validate_options([("database", "shop"), ("table", "orders")], OptionContext.FOREIGN_TABLE)
