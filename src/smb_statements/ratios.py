# SMB Statements - Interlinked financial statements simulator for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Financial ratios for SMB Statements.

This module derives the read-only ratio report from a fully recomputed
snapshot of the statements (see engine.py).

1. Ratio rules
   ------------
   Ratios are defined in TOML files under ``[ratios.<group>.<key>]``
   sections. Each ratio specifies:
       - a human-readable label,
       - a formula string over measure keys (``engine.build_measures``),
       - a unit hint (ratio, times, amount...),
       - optional notes.

   The packaged default (``data/ratios_default.toml``) defines four groups:

       liquidity      current_ratio, quick_ratio
       profitability  gross_profit_margin, net_profit_margin,
                      return_on_assets, return_on_equity
       solvency       debt_to_equity_ratio, debt_to_assets_ratio,
                      interest_coverage_ratio
       efficiency     inventory_turnover, asset_turnover

   A custom rules file with the same layout can replace it (config.py).

2. Evaluation
   -----------
   Formulas are evaluated by a restricted AST evaluator (numbers, measure
   names, + - * / %, unary minus, parentheses). Division follows IEEE-754
   semantics instead of raising:

       x / 0  ->  +inf or -inf (sign of x)
       0 / 0  ->  nan

   Those non-finite values are valid, documented outputs. A formula that
   cannot be evaluated at all (unknown measure, syntax error) yields
   ``value=None`` and a logged warning. ``compute_ratios()`` never raises
   for a well-formed rules table.

3. Report
   -------
   ``compute_ratios()`` returns a ``RatioReport`` exposing one
   {key -> value} dictionary per group (``liquidity``, ``profitability``,
   ``solvency``, ``efficiency``) plus the detailed ``RatioResult`` list used
   by views.py.
"""

import ast
import logging
import math
import operator
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .engine import build_measures
from .statements import FullStatements

logger = logging.getLogger(__name__)

# Display order of ratio groups. Groups found in a rules file but not listed
# here are reported after these, in file order.
GROUP_ORDER: tuple[str, ...] = ("liquidity", "profitability", "solvency", "efficiency")

DEFAULT_RULES_RESOURCE = "ratios_default.toml"


@dataclass(frozen=True)
class RatioResult:
    """
    Computed ratio as returned by this module.

    Attributes:
        key: Internal identifier (e.g. 'current_ratio').
        label: Human-readable label for display (e.g. 'Current ratio').
        value: Float value (possibly inf or nan), or None if the formula
            could not be evaluated.
        unit: Unit hint ('ratio', 'times', 'amount', etc.).
        notes: Optional human-readable notes or description.
        group: Ratio group ('liquidity', 'profitability', ...).
    """

    key: str
    label: str
    value: Optional[float]
    unit: str
    notes: str
    group: str


@dataclass(frozen=True)
class RatioReport:
    """Ratios grouped by family, computed from one consistent snapshot."""

    results: tuple[RatioResult, ...] = ()

    def group(self, name: str) -> dict[str, Optional[float]]:
        return {r.key: r.value for r in self.results if r.group == name}

    @property
    def liquidity(self) -> dict[str, Optional[float]]:
        return self.group("liquidity")

    @property
    def profitability(self) -> dict[str, Optional[float]]:
        return self.group("profitability")

    @property
    def solvency(self) -> dict[str, Optional[float]]:
        return self.group("solvency")

    @property
    def efficiency(self) -> dict[str, Optional[float]]:
        return self.group("efficiency")

    def as_dict(self) -> dict[str, dict[str, Optional[float]]]:
        groups: dict[str, dict[str, Optional[float]]] = {}
        for r in self.results:
            groups.setdefault(r.group, {})[r.key] = r.value
        return groups


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Ratio rules file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML ratio rules file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


@lru_cache(maxsize=1)
def _default_rules_text() -> str:
    resource = resources.files("smb_statements") / "data" / DEFAULT_RULES_RESOURCE
    return resource.read_text(encoding="utf-8")


def load_ratio_rules(rules_file: Optional[Path] = None) -> dict[str, Any]:
    """
    Load ratio rules and return the ``[ratios]`` table.

    Args:
        rules_file: Path to a TOML rules file. When omitted, the packaged
            default rules are used.

    Returns:
        A dictionary {group -> {key -> {label, formula, unit, notes}}}.

    Raises:
        FileNotFoundError / ValueError: if ``rules_file`` cannot be read or
            has no ``[ratios]`` table.
    """
    if rules_file is None:
        data = tomllib.loads(_default_rules_text())
        source = DEFAULT_RULES_RESOURCE
    else:
        data = _load_toml(Path(rules_file))
        source = str(rules_file)

    ratios_section = data.get("ratios")
    if not isinstance(ratios_section, Mapping) or not ratios_section:
        raise ValueError(f"No [ratios] table found in {source}.")
    return dict(ratios_section)


def _ieee_div(left: float, right: float) -> float:
    """Divide with IEEE-754 semantics for a zero divisor."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        # copysign keeps the sign of a negative zero divisor
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _ieee_mod(left: float, right: float) -> float:
    if right == 0:
        return math.nan
    return left % right


_ALLOWED_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: _ieee_div,
    ast.Mod: _ieee_mod,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


def _safe_eval_expr(expr: str, variables: Mapping[str, float]) -> float:
    """
    Safely evaluate a simple arithmetic expression using the given variables.

    Supported:
        - numeric literals
        - variable names (keys from `variables`)
        - binary operations: +, -, *, /, %
        - unary minus / plus
        - parentheses

    Args:
        expr: Expression string (e.g. "net_income / total_assets").
        variables: Mapping of variable names to float values.

    Returns:
        The evaluated float value (possibly inf or nan).

    Raises:
        ValueError: if the expression contains unsupported constructs or
            unknown variables.
    """
    try:
        tree = ast.parse(expr, mode="eval")
    except SyntaxError as exc:
        raise ValueError(f"Invalid expression syntax: {expr!r}") from exc

    def _eval(node: ast.AST) -> float:
        if isinstance(node, ast.Expression):
            return _eval(node.body)

        if isinstance(node, ast.Constant):
            if isinstance(node.value, (int, float)) and not isinstance(
                node.value, bool
            ):
                return float(node.value)
            raise ValueError(f"Unsupported constant in expression: {node.value!r}")

        if isinstance(node, ast.Name):
            name = node.id
            if name not in variables:
                raise ValueError(f"Unknown variable in expression: {name!r}")
            return float(variables[name])

        if isinstance(node, ast.BinOp):
            left = _eval(node.left)
            right = _eval(node.right)
            op_type = type(node.op)
            if op_type not in _ALLOWED_OPERATORS:
                raise ValueError(f"Unsupported operator in expression: {op_type}")
            op_func = _ALLOWED_OPERATORS[op_type]
            return float(op_func(left, right))

        if isinstance(node, ast.UnaryOp):
            if type(node.op) not in _ALLOWED_OPERATORS:
                raise ValueError(f"Unsupported unary operator: {node.op!r}")
            operand = _eval(node.operand)
            op_func = _ALLOWED_OPERATORS[type(node.op)]
            return float(op_func(operand))

        raise ValueError(f"Unsupported expression node: {type(node).__name__}")

    return _eval(tree)


def _ordered_groups(rules: Mapping[str, Any]) -> list[str]:
    known = [g for g in GROUP_ORDER if g in rules]
    extra = [g for g in rules if g not in GROUP_ORDER]
    return known + extra


def compute_ratios_from_measures(
    measures: Mapping[str, float],
    rules: Mapping[str, Any],
) -> list[RatioResult]:
    """
    Evaluate every ratio of ``rules`` against ``measures``.

    Args:
        measures: Mapping of measure names to float values.
        rules: The ``[ratios]`` table, as returned by ``load_ratio_rules``.

    Returns:
        A list of RatioResult, grouped in ``GROUP_ORDER`` order and in file
        order within each group. Ratios whose formula cannot be evaluated
        have value=None.
    """
    results: list[RatioResult] = []

    for group in _ordered_groups(rules):
        group_section = rules.get(group) or {}
        if not isinstance(group_section, Mapping):
            continue

        for key, cfg in group_section.items():
            if not isinstance(cfg, Mapping):
                continue

            label = str(cfg.get("label", key))
            formula = cfg.get("formula")
            unit = str(cfg.get("unit", "ratio"))
            notes = str(cfg.get("notes", ""))

            value: Optional[float]
            if not formula:
                value = None
            else:
                try:
                    value = _safe_eval_expr(str(formula), measures)
                except ValueError as exc:
                    logger.warning("Cannot evaluate ratio %s.%s: %s", group, key, exc)
                    value = None

            results.append(
                RatioResult(
                    key=str(key),
                    label=label,
                    value=value,
                    unit=unit,
                    notes=notes,
                    group=str(group),
                )
            )

    return results


def compute_ratios(
    statements: FullStatements,
    rules: Optional[Mapping[str, Any]] = None,
) -> RatioReport:
    """
    Compute the ratio report of a fully recomputed snapshot.

    Args:
        statements: Output of ``engine.recompute``.
        rules: Optional ``[ratios]`` table; the packaged default is used
            when omitted.

    Returns:
        A RatioReport. Non-finite values are kept as-is (see module notes).
    """
    if rules is None:
        rules = load_ratio_rules()
    measures = build_measures(statements)
    return RatioReport(results=tuple(compute_ratios_from_measures(measures, rules)))
