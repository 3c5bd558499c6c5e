# src/services/multiselect.py
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

DEFAULT_PLACEHOLDER = "Select items..."


def toggle(selected: Sequence[str], option: str) -> List[str]:
    """Remove `option` if selected, otherwise append it."""
    current = list(selected or [])
    if option in current:
        return [item for item in current if item != option]
    return [*current, option]


def filter_options(options: Sequence[str], text: Optional[str]) -> List[str]:
    """Case-insensitive substring filter; empty text keeps every option."""
    needle = (text or "").strip().lower()
    if not needle:
        return list(options or [])
    return [option for option in options or [] if needle in option.lower()]


@dataclass
class OptionView:
    value: str
    checked: bool


@dataclass
class MultiSelectView:
    options: List[OptionView]
    badges: List[str]
    placeholder: Optional[str]
    search_placeholder: str
    empty_message: Optional[str] = None


@dataclass
class MultiSelect:
    """
    Closed-list multi-select. Options are expected to be unique; no
    deduplication is done beyond what the caller supplies.
    """
    options: List[str] = field(default_factory=list)
    selected: List[str] = field(default_factory=list)
    placeholder: str = DEFAULT_PLACEHOLDER

    def view(self, text: Optional[str] = None) -> MultiSelectView:
        visible = filter_options(self.options, text)
        chosen = set(self.selected)
        return MultiSelectView(
            options=[OptionView(value=option, checked=option in chosen) for option in visible],
            badges=list(self.selected),
            placeholder=None if self.selected else self.placeholder,
            search_placeholder=f"Search {self.placeholder.lower()}...",
            empty_message=None if visible else "No item found.",
        )
