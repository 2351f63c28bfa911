# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB Statements.

This module wires together the main building blocks of SMB Statements:

- application configuration (seed statements, loan split, ratios, display),
- transaction files (CSV / JSON),
- the session aggregate (``FinancialState``) with its history and undo,
- ratios engine,
- view helpers (tabular rendering and CSV export).

The CLI is intentionally thin: it does not implement accounting logic
itself. It replays transactions through ``FinancialState`` and renders the
resulting snapshot.


High-level pipeline
-------------------

1) Load the TOML configuration (``smb_statements_config.toml`` by default)
   using ``load_app_config()``. When no ``--config`` is given and the default
   file does not exist, built-in defaults are used.

2) Create a ``FinancialState`` initialized with the seed statements.

3) Optionally replay a transaction file (``--transactions``). Each record is
   validated and applied in order; rejected records are reported and leave
   the state unchanged, the following records are still applied.

4) Optionally undo the last N recorded transactions (``--undo N``).

5) Render the selected scope as console tables and/or CSV files.


Scopes: what to render
----------------------

- ``statements`` (default): balance sheet, income statement, cash flow.
- ``ratios``: ratio report only.
- ``all``: statements, ratios and the transaction log.

If ratios are disabled in the configuration (ratios.enabled = false),
scopes including ``ratios`` skip them and inform the user.


Display modes
-------------

- ``table``: print tables to stdout (``pandas.DataFrame.to_string``),
- ``csv``:   write timestamped CSV files to ``--output`` (default
  ``data/output``),
- ``both``:  do both.

The display mode defaults to ``display.mode`` from the configuration and can
be overridden with ``--display-mode``.


Examples
--------

    python -m smb_statements.cli --transactions data/transactions.csv

    python -m smb_statements.cli --config smb_statements_config.toml \\
        --transactions data/transactions.json --scope all --display-mode both

    python -m smb_statements.cli --transactions data/transactions.csv \\
        --undo 2 --scope ratios --verbose
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import DEFAULT_CONFIG_FILE, DISPLAY_MODES, AppConfig, load_app_config
from .io import read_transaction_records
from .state import FinancialState
from .views import (
    balance_sheet_to_dataframe,
    cash_flow_to_dataframe,
    income_statement_to_dataframe,
    ratios_to_dataframe,
    transactions_to_dataframe,
)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_statements.cli",
        description=(
            "SMB Statements - Interlinked financial statements simulator for "
            "SMBs. Replays business transactions through the balance sheet, "
            "income statement and cash flow statement, then renders the "
            "statements and financial ratios."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_statements and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. If omitted, "
            f"'{DEFAULT_CONFIG_FILE}' in the current directory is used when "
            "present, built-in defaults otherwise."
        ),
    )

    ap.add_argument(
        "--transactions",
        dest="transactions_path",
        metavar="FILE",
        help="CSV or JSON file of transactions to record, in file order.",
    )

    ap.add_argument(
        "--undo",
        dest="undo",
        type=int,
        default=0,
        metavar="N",
        help="Undo the last N recorded transactions before rendering.",
    )

    ap.add_argument(
        "--scope",
        choices=["statements", "ratios", "all"],
        default="statements",
        help=(
            "Select what to render: "
            "'statements' = the three statements; "
            "'ratios' = ratios only; "
            "'all' = statements, ratios and the transaction log."
        ),
    )

    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. "
            "If omitted, 'data/output' is used."
        ),
    )

    ap.add_argument(
        "--verbose",
        action="store_true",
        help="Log every applied transaction (debug level).",
    )

    return ap


def _resolve_config(config_path: Optional[str]) -> AppConfig:
    if config_path:
        return load_app_config(config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    return AppConfig()


def _replay_transactions(state: FinancialState, path: Path) -> tuple[int, int]:
    """Record every transaction of ``path``. Return (recorded, rejected)."""
    records = read_transaction_records(path)
    logger.debug("Read %d transaction records from %s", len(records), path)
    recorded = rejected = 0
    for index, record in enumerate(records, start=1):
        result = state.record_transaction(record)
        if not result.ok:
            rejected += 1
            print(f"Rejected transaction #{index}: {result.error}")
            continue
        recorded += 1
        for _edit, error in result.dropped_edits:
            print(f"Transaction #{index}: skipped edit ({error})")
    return recorded, rejected


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the SMB Statements CLI.

    This function parses command-line arguments, loads the configuration,
    replays the optional transaction file through a ``FinancialState``,
    applies the requested undos, and renders the selected scope as console
    tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_statements version {__version__}")
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.undo < 0:
        parser.error("--undo expects a non-negative number of transactions.")

    # 1) Load application configuration
    try:
        config = _resolve_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    # 2) Session state, seeded from the configuration
    state = FinancialState(config)

    # 3) Optional transaction file
    if args.transactions_path:
        tx_path = Path(args.transactions_path)
        try:
            recorded, rejected = _replay_transactions(state, tx_path)
        except (FileNotFoundError, ValueError) as exc:
            parser.error(str(exc))
        print(
            f"Recorded {recorded} transactions from {tx_path} "
            f"({rejected} rejected)."
        )

    # 4) Optional undo
    if args.undo:
        undone = 0
        for _ in range(args.undo):
            if state.undo() is None:
                break
            undone += 1
        print(f"Undid {undone} transaction(s).")

    snapshot = state.snapshot()
    decimals = config.decimals

    scope = args.scope
    want_statements = scope in {"statements", "all"}
    want_ratios = scope in {"ratios", "all"} and config.ratios_enabled
    want_transactions = scope == "all"

    if scope in {"ratios", "all"} and not config.ratios_enabled:
        print(
            "Ratios have been requested in scope, but ratios are disabled in the "
            "configuration (ratios.enabled = false). Skipping ratios."
        )

    # 5) Build the views
    views: list[tuple[str, str, pd.DataFrame]] = []
    if want_statements:
        views.append(
            (
                "Balance Sheet",
                "balance_sheet",
                balance_sheet_to_dataframe(snapshot.statements, decimals),
            )
        )
        views.append(
            (
                "Income Statement",
                "income_statement",
                income_statement_to_dataframe(snapshot.statements, decimals),
            )
        )
        views.append(
            (
                "Cash Flow Statement",
                "cash_flow_statement",
                cash_flow_to_dataframe(snapshot.statements, decimals),
            )
        )
    if want_ratios:
        views.append(
            (
                "Financial Ratios",
                "ratios",
                ratios_to_dataframe(snapshot.ratios, decimals),
            )
        )
    if want_transactions:
        views.append(
            (
                "Transactions",
                "transactions",
                transactions_to_dataframe(list(snapshot.transactions)),
            )
        )

    # 6) Resolve display mode: config value overridden by CLI if provided.
    display_mode = config.display_mode
    if args.display_mode:
        display_mode = args.display_mode

    # 7) Render to console (table mode).
    if display_mode in {"table", "both"}:
        for title, _name, df in views:
            print()
            print(f"=== {title} ({config.currency}) ===")
            if df.empty:
                print("(empty)")
            else:
                print(df.to_string(index=False))

        if want_statements:
            totals = snapshot.statements.balance_sheet_totals
            gap = totals.total_assets - (totals.total_liabilities + totals.total_equity)
            print()
            print(
                f"Assets - (liabilities + equity): "
                f"{config.currency_symbol}{gap:,.{decimals}f}"
            )

    # 8) Render to CSV files (csv mode).
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")

        for _title, name, df in views:
            path = output_dir / f"{name}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


if __name__ == "__main__":
    main()
