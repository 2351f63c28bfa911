# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Statements
--------------

A Python simulator of the three interlinked financial statements of a Small
or Medium-sized Business (SMB): balance sheet, income statement and cash
flow statement. Each business transaction (sale, purchase, loan, dividend,
custom adjustment...) is translated into coordinated updates of the three
statements, whose totals and financial ratios are then recomputed.

Main capabilities:
- typed statement model with a canonical seed state,
- transaction processor with one rule set per transaction kind,
- pure derived-value engine (totals, net income, cash flow),
- configurable ratios engine (liquidity, profitability, solvency,
  efficiency) driven by TOML rules,
- snapshot history with undo and reset,
- a thread-safe session aggregate (``FinancialState``) publishing immutable
  snapshots to observers,
- CSV / JSON transaction files and pandas views for display and export.

Computation (processor, engine, ratios), session state and presentation
(views, CLI) are kept in separate modules.


Version: 0.1.0

Usage:
    python -m smb_statements.cli --help
"""

__all__ = [
    "config",
    "engine",
    "errors",
    "history",
    "io",
    "processor",
    "ratios",
    "state",
    "statements",
    "transactions",
    "views",
]

__version__ = "0.1.0"
