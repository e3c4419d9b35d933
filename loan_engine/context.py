"""Per-period context construction.

The context of a period starts from the base context, takes the previous
period's closing balance as its opening principal and then merges the patches
of every active operator, in registration order (base, operator 1,
operator 2, ...). Each operator sees the context produced by the operators
before it; the last write to a field wins.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Iterable, List, Tuple

from .data_models import AmortizationItem, BaseContext, ContextItem
from .operators import Operator, Patch

logger = logging.getLogger(__name__)


def collect_patches(
    period: int, context: ContextItem, operators: Iterable[Operator]
) -> Tuple[ContextItem, List[Tuple[Operator, Patch]]]:
    """Apply ``operators`` to ``context`` one after the other.

    Returns the resulting context and the ordered list of
    ``(operator, patch)`` pairs that produced it.
    """
    applied: List[Tuple[Operator, Patch]] = []
    for operator in operators:
        patch = operator.apply(period, context)
        context = dataclasses.replace(context, **patch)
        applied.append((operator, patch))
    return context, applied


def find_conflicts(applied: Iterable[Tuple[Operator, Patch]]) -> Dict[str, List[Operator]]:
    """Return the fields written by more than one operator."""
    writers: Dict[str, List[Operator]] = {}
    for operator, patch in applied:
        for name in patch:
            writers.setdefault(name, []).append(operator)
    return {name: ops for name, ops in writers.items() if len(ops) > 1}


def build_context_at(
    period: int,
    previous_amortization: AmortizationItem,
    base_context: BaseContext,
    operators: Iterable[Operator],
) -> ContextItem:
    """Build the context entering ``period``."""
    context = dataclasses.replace(
        ContextItem.from_base(period, base_context),
        principal=previous_amortization.principal_balance,
    )
    context, applied = collect_patches(period, context, operators)

    conflicts = find_conflicts(applied)
    if conflicts:
        logger.debug(
            "Period %s: fields %s written by several operators; last write wins",
            period,
            sorted(conflicts),
        )
    return context
