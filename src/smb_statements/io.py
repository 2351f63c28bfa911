# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Statements.

This module reads batches of transactions from files so that they can be
replayed through ``FinancialState.record_transaction``. It does not persist
session state.

Supported input formats
-----------------------

1) CSV (``.csv``)
   ---------------
   Column names are case-insensitive; camelCase headers are accepted:

       type, amount, payment_method, cogs, expense_type, asset_type,
       term, principal, interest, description

   - ``type`` is required (``kind`` is accepted as an alias),
   - all other columns are optional; blank cells mean "absent".

   Custom transactions need a list of edits and cannot be expressed in a
   flat CSV row: use JSON for them.

2) JSON (``.json``)
   -----------------
   A list of transaction objects, as accepted by
   ``Transaction.from_mapping()``::

       [
         {"type": "sale", "amount": 1000, "paymentMethod": "cash"},
         {"type": "custom", "affects": [
             {"statement": "balanceSheet", "account": "assets",
              "subAccount": "cash", "change": -250}
         ]}
       ]

Two readers are provided:

- ``read_transaction_records()`` returns plain dictionaries, leaving
  validation to the caller (the CLI reports rejected rows one by one),
- ``read_transactions()`` validates every record and raises on the first
  invalid one.
"""

import json
import math
import os
from typing import Any, Union

import pandas as pd

from .errors import TransactionError
from .statements import snake_case
from .transactions import Transaction

PathLike = Union[str, "os.PathLike[str]"]


def _clean(value: Any) -> Any:
    """Turn pandas missing values into None and numpy scalars into Python."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if hasattr(value, "item"):
        value = value.item()
    return value


def _read_csv_records(path: PathLike) -> list[dict[str, Any]]:
    df = pd.read_csv(path)

    # Normalize column names (case-insensitive, camelCase accepted)
    df.columns = [snake_case(c) for c in df.columns]
    cols = set(df.columns)

    if "kind" in cols and "type" not in cols:
        df = df.rename(columns={"kind": "type"})
        cols = set(df.columns)

    if "type" not in cols:
        raise ValueError(
            "Invalid transactions CSV structure. Expected at least a 'type' "
            "column (alias 'kind'), plus 'amount' and optional columns: "
            "payment_method, cogs, expense_type, asset_type, term, principal, "
            "interest, description."
        )

    if "affects" in cols:
        raise ValueError(
            "Custom transactions ('affects') are not supported in CSV files, "
            "use a JSON file instead."
        )

    records: list[dict[str, Any]] = []
    for row in df.to_dict(orient="records"):
        records.append(
            {str(k): _clean(v) for k, v in row.items() if _clean(v) is not None}
        )
    return records


def _read_json_records(path: PathLike) -> list[dict[str, Any]]:
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to parse JSON transactions file: {path}") from exc

    if isinstance(data, dict) and "transactions" in data:
        data = data["transactions"]

    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        raise ValueError(
            f"Invalid JSON transactions file {path}: expected a list of objects."
        )
    return [dict(d) for d in data]


def read_transaction_records(path: PathLike) -> list[dict[str, Any]]:
    """
    Read raw transaction records from a CSV or JSON file.

    Parameters
    ----------
    path:
        Path to a ``.csv`` or ``.json`` file.

    Returns
    -------
    list[dict]
        One dictionary per transaction, in file order. Missing CSV cells
        are omitted from the dictionaries.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the extension is not supported or the structure is invalid.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Transactions file not found: {path}")

    ext = os.path.splitext(str(path))[1].lower()
    if ext == ".csv":
        return _read_csv_records(path)
    if ext == ".json":
        return _read_json_records(path)
    raise ValueError(
        f"Unsupported transactions file extension {ext!r}. Expected .csv or .json."
    )


def read_transactions(path: PathLike) -> list[Transaction]:
    """
    Read and validate transactions from a CSV or JSON file.

    Raises
    ------
    ValueError
        If the file structure is invalid, or if a record is rejected by
        ``Transaction.from_mapping`` (the message gives the 1-based record
        number; the underlying error is chained).
    """
    transactions: list[Transaction] = []
    for index, record in enumerate(read_transaction_records(path), start=1):
        try:
            transactions.append(Transaction.from_mapping(record))
        except TransactionError as exc:
            raise ValueError(f"Invalid transaction #{index} in {path}: {exc}") from exc
    return transactions
