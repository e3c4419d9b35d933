"""Command-line interface for the loan engine.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full amortization schedules or only their
totals, configure the loan through options or a JSON file, and attach
operators (fees, offsets, lump sums, rate changes and extra repayments).
Results are printed as JSON or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .data_models import CalculationResult, Frequency, LoanConfig
from .engine import compute_schedule
from .operators import ExtraRepayment, Fee, InterestRateChange, LumpSum, Offset, Operator
from .utils import decimal_from_str, parse_amount, parse_percent

FREQUENCY_CHOICES = [f.name.lower() for f in Frequency]


def _frequency(name: Optional[str]) -> Optional[int]:
    return Frequency[name.upper()] if name else None


def _parse_window(parts: List[str], item: str) -> Tuple[int, Optional[int]]:
    try:
        start = int(parts[0]) if parts and parts[0] else 1
        end = int(parts[1]) if len(parts) > 1 and parts[1] else None
    except ValueError:
        raise click.BadParameter(f"Invalid period window in {item}")
    return start, end


def parse_windowed_amounts(values: Tuple[str, ...], option: str) -> List[Tuple[Any, int, Optional[int]]]:
    """Parse ``AMOUNT[:START[:END]]`` strings."""
    parsed = []
    for item in values:
        parts = item.split(":")
        if len(parts) > 3:
            raise click.BadParameter(f"{option} must be in AMOUNT[:START[:END]] format; got {item}")
        try:
            amount = parse_amount(parts[0])
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        start, end = _parse_window(parts[1:], item)
        parsed.append((amount, start, end))
    return parsed


def parse_lump_sum_strings(values: Tuple[str, ...]) -> List[LumpSum]:
    lump_sums: List[LumpSum] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Lump sum must be in PERIOD:AMOUNT format; got {item}")
        try:
            period = int(parts[0])
            amount = parse_amount(parts[1])
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        lump_sums.append(LumpSum(amount=amount, period=period))
    return lump_sums


def parse_rate_change_strings(values: Tuple[str, ...], rate_frequency: Optional[str]) -> List[InterestRateChange]:
    changes: List[InterestRateChange] = []
    for item in values:
        parts = item.split(":")
        if len(parts) not in (2, 3):
            raise click.BadParameter(f"Rate change must be in START:RATE[:END] format; got {item}")
        try:
            rate = parse_percent(parts[1])
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        start, end = _parse_window([parts[0]] + parts[2:], item)
        changes.append(
            InterestRateChange(
                interest_rate=rate,
                interest_rate_frequency=_frequency(rate_frequency) or Frequency.YEAR,
                start_period=start,
                end_period=end,
            )
        )
    return changes


def build_operators(
    fee: Tuple[str, ...],
    offset: Tuple[str, ...],
    lump_sum: Tuple[str, ...],
    rate_change: Tuple[str, ...],
    extra_repayment: Tuple[str, ...],
    rate_frequency: Optional[str] = None,
) -> List[Operator]:
    """Build operators in a fixed order: fees, offsets, lump sums, rate changes, extra repayments."""
    operators: List[Operator] = []
    operators += [Fee(amount=a, start_period=s, end_period=e)
                  for a, s, e in parse_windowed_amounts(fee, "Fee")]
    operators += [Offset(amount=a, start_period=s, end_period=e)
                  for a, s, e in parse_windowed_amounts(offset, "Offset")]
    operators += parse_lump_sum_strings(lump_sum)
    operators += parse_rate_change_strings(rate_change, rate_frequency)
    operators += [ExtraRepayment(amount=a, start_period=s, end_period=e)
                  for a, s, e in parse_windowed_amounts(extra_repayment, "Extra repayment")]
    return operators


def build_config_from_options(
    config_file: Optional[str],
    principal: Optional[str],
    rate: Optional[str],
    rate_frequency: Optional[str],
    term: Optional[str],
    term_frequency: Optional[str],
    repayment_frequency: Optional[str],
    repayment_type: Optional[str],
    repayment: Optional[str],
    savings: bool,
) -> LoanConfig:
    """Merge an optional JSON config file with command-line options.

    Command-line options override values read from the file.
    """
    data: Dict[str, Any] = {}
    if config_file:
        try:
            with Path(config_file).open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise click.BadParameter(f"Cannot read config file {config_file}: {exc}")
        if not isinstance(data, dict):
            raise click.BadParameter("Config file must contain a JSON object")
    try:
        if principal is not None:
            data["principal"] = parse_amount(principal)
        if rate is not None:
            data["interest_rate"] = parse_percent(rate)
        if term is not None:
            data["term"] = decimal_from_str(term)
        if repayment is not None:
            data["repayment"] = parse_amount(repayment)
        if rate_frequency:
            data["interest_rate_frequency"] = _frequency(rate_frequency)
        if term_frequency:
            data["term_frequency"] = _frequency(term_frequency)
        if repayment_frequency:
            data["repayment_frequency"] = _frequency(repayment_frequency)
        if repayment_type:
            data["repayment_type"] = repayment_type.upper()
        if savings:
            data["is_savings_mode"] = True
        return LoanConfig.from_dict(data)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def export_to_json(path: Path, result: CalculationResult) -> None:
    """Export totals and schedule to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)


def export_to_csv(path: Path, result: CalculationResult) -> None:
    """Export the amortization schedule to a CSV file."""
    header = [
        "Period",
        "Opening_Principal",
        "Interest_Rate",
        "Repayment",
        "Principal_Paid",
        "Interest_Paid",
        "Principal_Balance",
        "Interest_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for context, item in zip(result.context_list, result.amortization_list):
            writer.writerow(
                [
                    item.period,
                    float(context.principal),
                    float(context.eff_interest_rate),
                    float(item.repayment),
                    float(item.principal_paid),
                    float(item.interest_paid),
                    float(item.principal_balance),
                    float(item.interest_balance),
                ]
            )


def loan_options(func):
    """Attach the loan and operator options shared by every command."""
    options = [
        click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), help="JSON file with loan options"),
        click.option("--principal", "-p", "principal", help="Loan amount (or initial savings balance)"),
        click.option("--rate", "-r", "rate", help="Nominal interest rate (percent)"),
        click.option("--rate-frequency", "rate_frequency", type=click.Choice(FREQUENCY_CHOICES), help="Interest rate frequency"),
        click.option("--term", "-t", "term", help="Loan term"),
        click.option("--term-frequency", "term_frequency", type=click.Choice(FREQUENCY_CHOICES), help="Unit of the term"),
        click.option("--repayment-frequency", "repayment_frequency", type=click.Choice(FREQUENCY_CHOICES), help="Repayment frequency"),
        click.option("--type", "repayment_type", type=click.Choice(["IO", "PI"], case_sensitive=False), help="Interest only or principal and interest"),
        click.option("--repayment", "repayment", help="Periodic deposit (savings mode)"),
        click.option("--savings", "savings", is_flag=True, help="Calculate a savings plan instead of a loan"),
        click.option("--fee", "fee", multiple=True, help="Fee in AMOUNT[:START[:END]] format"),
        click.option("--offset", "offset", multiple=True, help="Offset balance in AMOUNT[:START[:END]] format"),
        click.option("--lump-sum", "lump_sum", multiple=True, help="Lump sum in PERIOD:AMOUNT format"),
        click.option("--rate-change", "rate_change", multiple=True, help="Rate change in START:RATE[:END] format"),
        click.option("--extra-repayment", "extra_repayment", multiple=True, help="Extra repayment in AMOUNT[:START[:END]] format"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run(params: Dict[str, Any]) -> CalculationResult:
    config = build_config_from_options(
        params["config_file"],
        params["principal"],
        params["rate"],
        params["rate_frequency"],
        params["term"],
        params["term_frequency"],
        params["repayment_frequency"],
        params["repayment_type"],
        params["repayment"],
        params["savings"],
    )
    operators = build_operators(
        params["fee"],
        params["offset"],
        params["lump_sum"],
        params["rate_change"],
        params["extra_repayment"],
        params["rate_frequency"],
    )
    try:
        return compute_schedule(config, operators)
    except (ValueError, TypeError) as exc:
        raise click.ClickException(str(exc))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """A command-line loan and savings amortization calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(output: Optional[str], **params: Any) -> None:
    """Compute the full amortization schedule."""
    result = _run(params)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
    else:
        click.echo(json.dumps(result.to_dict(), indent=2))


@cli.command()
@loan_options
def summary(**params: Any) -> None:
    """Compute only the totals of a schedule."""
    result = _run(params)
    data = result.to_dict()
    data["periods"] = len(result.amortization_list) - 1
    del data["context_list"]
    del data["amortization_list"]
    click.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    cli()
