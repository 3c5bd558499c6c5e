from __future__ import annotations

from typing import Iterable


def toggle_row(expanded: Iterable[str], row_id: str) -> list[str]:
    """Flip one row's expanded state; other rows keep theirs."""
    current = list(expanded)
    if row_id in current:
        return [item for item in current if item != row_id]
    return [*current, row_id]


def is_expanded(expanded: Iterable[str], row_id: str) -> bool:
    return row_id in set(expanded)
