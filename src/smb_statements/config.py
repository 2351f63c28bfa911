# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Statements.

This module is responsible for:
- loading the main application configuration from a TOML file,
- loading an optional seed file replacing the canonical initial statements,
- exposing a typed dataclass used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .statements import RawStatements, raw_statements_from_mapping

DEFAULT_CONFIG_FILE = "smb_statements_config.toml"

DISPLAY_MODES: tuple[str, ...] = ("table", "csv", "both")


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Statements.

    This aggregates:
    - the session settings (currency, optional seed statements),
    - the loan payment split used when a payment carries no explicit
      principal/interest,
    - ratio options (enabled flag, optional custom rules file),
    - display options for tables and CSV exports.
    """

    currency: str = "USD"
    seed_file: Optional[Path] = None
    seed_statements: Optional[RawStatements] = None
    principal_share: float = 0.8
    ratios_enabled: bool = True
    ratios_rules_file: Optional[Path] = None
    display_mode: str = "table"
    decimals: int = 2
    currency_symbol: str = "$"


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _table(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def load_seed_file(path: Path) -> RawStatements:
    """
    Load seed statements from a TOML file.

    The file mirrors ``statements.SEED_STATE``::

        [balance_sheet.assets.current_assets]
        cash = 50000
        ...
        [income_statement]
        revenue = 200000
        ...

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML cannot be parsed or holds invalid amounts.
    """
    data = _load_toml(path)
    try:
        return raw_statements_from_mapping(data)
    except ValueError as exc:
        raise ValueError(f"Invalid seed file {path}: {exc}") from exc


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Statements application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [session]
        currency, optional seed_file (initial statements replacing the
        canonical seed).

    [transactions]
        loan_principal_share: share of a loan payment treated as principal
        when the transaction carries no explicit split (default 0.8).

    [ratios]
        enabled (default true), optional rules_file (custom ratio rules).

    [display]
        mode (table, csv, both), decimals, currency_symbol.

    All file paths in the TOML are resolved relative to the directory of
    the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        ``smb_statements_config.toml`` in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the configuration file (or a file it references) does not exist.
    ValueError
        If the TOML cannot be parsed or holds invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Session section
    session_section = _table(raw, "session")
    currency = str(session_section.get("currency") or "USD")

    seed_file: Optional[Path] = None
    seed: Optional[RawStatements] = None
    seed_raw = session_section.get("seed_file")
    if seed_raw:
        seed_file = (base_dir / str(seed_raw)).resolve()
        seed = load_seed_file(seed_file)

    # 2) Transactions section
    transactions_section = _table(raw, "transactions")
    raw_share = transactions_section.get("loan_principal_share", 0.8)
    try:
        principal_share = float(raw_share)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'transactions.loan_principal_share' in the "
            "configuration. Expected a number."
        ) from exc
    if not 0.0 <= principal_share <= 1.0:
        raise ValueError(
            "'transactions.loan_principal_share' must be between 0 and 1, "
            f"got {principal_share}."
        )

    # 3) Ratios options
    ratios_section = _table(raw, "ratios")
    ratios_enabled = bool(ratios_section.get("enabled", True))
    rules_raw = ratios_section.get("rules_file")
    ratios_rules_file = (base_dir / str(rules_raw)).resolve() if rules_raw else None

    # 4) Display options
    display_section = _table(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid display mode {display_mode!r}. "
            f"Expected one of: {', '.join(DISPLAY_MODES)}."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2
    currency_symbol = str(display_section.get("currency_symbol", "$"))

    return AppConfig(
        currency=currency,
        seed_file=seed_file,
        seed_statements=seed,
        principal_share=principal_share,
        ratios_enabled=ratios_enabled,
        ratios_rules_file=ratios_rules_file,
        display_mode=display_mode,
        decimals=decimals,
        currency_symbol=currency_symbol,
    )
