from __future__ import annotations

from src.services import multiselect
from src.services.multiselect import MultiSelect

OPTIONS = ["Breakfast", "Brunch", "Dinner", "Dessert"]


class TestToggle:
    def test_adds_missing_option(self) -> None:
        assert multiselect.toggle(["Dinner"], "Dessert") == ["Dinner", "Dessert"]

    def test_removes_present_option(self) -> None:
        assert multiselect.toggle(["Dinner", "Dessert"], "Dinner") == ["Dessert"]

    def test_toggle_twice_is_identity(self) -> None:
        selected = ["Brunch"]
        assert multiselect.toggle(multiselect.toggle(selected, "Dinner"), "Dinner") == selected


class TestFilterOptions:
    def test_case_insensitive_substring(self) -> None:
        assert multiselect.filter_options(OPTIONS, "BR") == ["Breakfast", "Brunch"]

    def test_blank_text_keeps_all(self) -> None:
        assert multiselect.filter_options(OPTIONS, "  ") == OPTIONS


class TestMultiSelectView:
    def test_placeholder_only_when_nothing_selected(self) -> None:
        picker = MultiSelect(options=OPTIONS)

        assert picker.view().placeholder == "Select items..."
        view = MultiSelect(options=OPTIONS, selected=multiselect.toggle(picker.selected, "Dinner")).view()
        assert view.placeholder is None
        assert view.badges == ["Dinner"]

    def test_checked_flags(self) -> None:
        view = MultiSelect(options=OPTIONS, selected=["Brunch"]).view()
        checked = {option.value: option.checked for option in view.options}

        assert checked["Brunch"] is True
        assert checked["Dinner"] is False

    def test_empty_message_when_no_match(self) -> None:
        view = MultiSelect(options=OPTIONS, placeholder="Tags").view("zzz")

        assert view.options == []
        assert view.empty_message == "No item found."
        assert view.search_placeholder == "Search tags..."
