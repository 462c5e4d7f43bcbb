# src/remotescan/config/settings.py
"""
Configuration file for foreign tables.

The file mirrors the catalog objects a foreign table is made of:

    encoding: UTF8              # local database encoding (charset forced on MySQL)
    encoding_errors: "null"     # "null" (warn + NULL) or "error" (fail the scan)

    servers:
      shop:
        address: 10.0.0.5
        port: 3306

    user_mappings:
      shop:
        username: reporting
        password: s3cret        # or leave out and set MYSQL_PWD

    foreign_tables:
      orders:
        server: shop
        options:
          database: shop
          table: orders
        columns:
          - {name: id, type: int8}
          - {name: note, type: text}
          - {name: legacy_flag, dropped: true}

Location priority: explicit path > REMOTESCAN_CONFIG > ./.remotescan/config.yml

Options are validated per object (see `validate_options`) and then folded in
the order table, server, user mapping into RemoteOptions.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from remotescan.config.models import OptionContext, RemoteOptions, validate_options
from remotescan.engine.encoding import normalize_encoding_name
from remotescan.engine.schema import LocalSchema
from remotescan.errors import ConfigurationError
from remotescan.logging import get_logger

_logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(".remotescan") / "config.yml"


class ColumnConfig(BaseModel):
    name: str
    type: Optional[str] = None
    dropped: bool = False


class ForeignTableConfig(BaseModel):
    server: str
    options: Dict[str, Any] = Field(default_factory=dict)
    columns: List[ColumnConfig] = Field(default_factory=list)


class RemoteScanConfig(BaseModel):
    """Whole configuration file."""

    encoding: str = "UTF8"
    encoding_errors: Literal["null", "error"] = "null"
    servers: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    user_mappings: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    foreign_tables: Dict[str, ForeignTableConfig] = Field(default_factory=dict)


def find_config_file(path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Resolve the configuration file location (None if there is none)."""
    if path:
        return Path(path)
    env_path = os.getenv("REMOTESCAN_CONFIG")
    if env_path:
        return Path(env_path)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_config(path: Optional[Union[str, Path]] = None) -> RemoteScanConfig:
    """
    Load and validate the configuration file.

    Raises:
        FileNotFoundError: no configuration file could be found.
        ConfigurationError: the file is not valid YAML or fails validation.
    """
    cfg_path = find_config_file(path)
    if cfg_path is None:
        raise FileNotFoundError(
            "No remotescan configuration found. Pass a path, set REMOTESCAN_CONFIG, "
            f"or create {DEFAULT_CONFIG_PATH}"
        )

    with open(cfg_path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {cfg_path}: {e}") from e

    return parse_config(raw, source=str(cfg_path))


def parse_config(raw: Dict[str, Any], source: str = "<config>") -> RemoteScanConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{source}: top level must be a mapping")
    try:
        config = RemoteScanConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"{source}: {e}") from e

    normalize_encoding_name(config.encoding)
    for name, server in config.servers.items():
        validate_options(server.items(), OptionContext.SERVER)
    for name, mapping in config.user_mappings.items():
        validate_options(mapping.items(), OptionContext.USER_MAPPING)
    for name, table in config.foreign_tables.items():
        validate_options(table.options.items(), OptionContext.FOREIGN_TABLE)
    return config


def _option_pairs(config: RemoteScanConfig, table: ForeignTableConfig) -> List[Tuple[str, Any]]:
    if table.server not in config.servers:
        raise ConfigurationError(f'server "{table.server}" does not exist')

    pairs: List[Tuple[str, Any]] = []
    pairs.extend(table.options.items())
    pairs.extend(config.servers[table.server].items())
    pairs.extend(config.user_mappings.get(table.server, {}).items())

    # MySQL's own client honours MYSQL_PWD; use it when no mapping sets one
    if not any(name == "password" for name, _ in pairs) and os.getenv("MYSQL_PWD"):
        pairs.append(("password", os.getenv("MYSQL_PWD")))
    return pairs


def resolve_foreign_table(
    config: RemoteScanConfig, name: str
) -> Tuple[RemoteOptions, LocalSchema]:
    """
    Resolve a configured foreign table into options and a local schema.

    Raises:
        ConfigurationError: unknown table/server, or invalid options.
    """
    table = config.foreign_tables.get(name)
    if table is None:
        known = ", ".join(sorted(config.foreign_tables)) or "<none>"
        raise ConfigurationError(f'foreign table "{name}" does not exist (configured: {known})')

    try:
        options = RemoteOptions.from_pairs(_option_pairs(config, table))
    except ValidationError as e:
        raise ConfigurationError(f'foreign table "{name}": {e}') from e

    if not table.columns:
        raise ConfigurationError(f'foreign table "{name}" has no columns')
    schema = LocalSchema.from_columns(
        [c.model_dump() for c in table.columns], encoding=config.encoding
    )
    _logger.debug("Resolved foreign table %s: %s", name, options.redacted())
    return options, schema
