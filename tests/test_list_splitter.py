"""Tests for the deterministic list splitter."""

import pytest

from taskcapture.capture.folders import FolderDefinition, build_folder_aliases
from taskcapture.splitter.list_splitter import split_items, split_multi_capture


class TestSplitItems:
    """Tests for split_items() on prefix-free text."""

    def test_single_task(self) -> None:
        """Test that plain text is a single item."""
        assert split_items("single task") == ["single task"]

    def test_multiline_prose_stays_whole(self) -> None:
        """Test that prose lines without markers are not split."""
        text = "This is a note line one\nThis is line two"
        assert split_items(text) == [text]

    def test_numbered_list(self) -> None:
        """Test a numbered list with dots."""
        assert split_items("1. buy milk\n2. call mom\n3. send invoice") == [
            "buy milk",
            "call mom",
            "send invoice",
        ]

    def test_numbered_list_parenthesis(self) -> None:
        """Test a numbered list with closing parentheses."""
        assert split_items("1) buy milk\n2) call mom") == ["buy milk", "call mom"]

    @pytest.mark.parametrize("bullet", ["-", "*", "•"])
    def test_bullet_list(self, bullet: str) -> None:
        """Test each bullet marker."""
        text = f"{bullet} plan sprint\n{bullet} sync team\n{bullet} ship feature"
        assert split_items(text) == ["plan sprint", "sync team", "ship feature"]

    def test_checkbox_list(self) -> None:
        """Test checkbox markers with and without a leading bullet."""
        assert split_items("[ ] buy milk\n[x] call mom") == ["buy milk", "call mom"]
        assert split_items("- [ ] buy milk\n- [X] call mom") == ["buy milk", "call mom"]

    def test_blank_lines_ignored(self) -> None:
        """Test that blank lines between list lines are skipped."""
        assert split_items("- one\n\n- two\n") == ["one", "two"]

    def test_mostly_unmarked_lines_stay_whole(self) -> None:
        """Test the marker ratio threshold."""
        text = "Shopping for the weekend\n- milk\nand some other things"
        assert split_items(text) == [text]

    def test_one_unmarked_line_in_five_still_splits(self) -> None:
        """Test that 80% marked lines is enough."""
        text = "todo\n- a\n- b\n- c\n- d"
        assert split_items(text) == ["todo", "a", "b", "c", "d"]

    def test_semicolon_list(self) -> None:
        """Test a short single-line semicolon list."""
        assert split_items("buy milk; call mom; send invoice") == [
            "buy milk",
            "call mom",
            "send invoice",
        ]

    def test_semicolon_long_segment_stays_whole(self) -> None:
        """Test that a long segment means prose, not a list."""
        text = f"quick task; {'x' * 150}; another task"
        assert split_items(text) == [text]

    def test_semicolon_multiline_stays_whole(self) -> None:
        """Test that semicolons in multiline text are not list separators."""
        text = "First paragraph; still same thought\nSecond paragraph; still same note"
        assert split_items(text) == [text]

    def test_single_semicolon_segment(self) -> None:
        """Test that a trailing semicolon does not split."""
        assert split_items("buy milk;") == ["buy milk;"]

    def test_long_text_stays_whole(self) -> None:
        """Test the note-length guard."""
        text = f"{'a' * 260}\n{'b' * 260}"
        assert split_items(text) == [text]

    def test_custom_threshold(self) -> None:
        """Test that the note-length guard follows the threshold."""
        assert split_items("- a\n- b", note_length_threshold=5) == ["- a\n- b"]

    def test_overflow_tail_preserved(self) -> None:
        """Test that items beyond the limit are joined into the last slot."""
        text = "\n".join(f"{i}. {i}" for i in range(1, 13))
        assert split_items(text) == [
            "1",
            "2",
            "3",
            "4",
            "5",
            "6",
            "7",
            "8",
            "9",
            "10\n11\n12",
        ]

    def test_exactly_ten_items(self) -> None:
        """Test that ten items are not joined."""
        text = "\n".join(f"- item {i}" for i in range(10))
        assert len(split_items(text)) == 10

    @pytest.mark.parametrize("text", ["", "   ", "\n\n"])
    def test_blank(self, text: str) -> None:
        """Test that blank input gives no items."""
        assert split_items(text) == []


class TestSplitMultiCapture:
    """Tests for split_multi_capture() with folder prefixes."""

    def test_folder_prefix_then_list(self) -> None:
        """Test a list after a folder display name."""
        assert split_multi_capture("работа: 1. fix bug\n2. review PR\n3. deploy") == [
            "fix bug",
            "review PR",
            "deploy",
        ]

    def test_prefix_followed_by_bullet(self) -> None:
        """Test that the first bullet survives prefix stripping."""
        assert split_multi_capture("работа: - task one\n- task two") == ["task one", "task two"]

    def test_slug_prefix(self) -> None:
        """Test a list after a folder slug."""
        assert split_multi_capture("personal: 1. item A\n2. item B") == ["item A", "item B"]

    def test_custom_folder_prefix(self) -> None:
        """Test a custom folder display name."""
        aliases = build_folder_aliases([FolderDefinition("finance", "Финансы")])
        assert split_multi_capture("финансы: 1. invoice\n2. taxes", aliases) == [
            "invoice",
            "taxes",
        ]

    def test_custom_folder_partial_prefix(self) -> None:
        """Test a partial custom folder prefix."""
        aliases = build_folder_aliases([FolderDefinition("finance", "Финансы")])
        assert split_multi_capture("фин: 1. invoice\n2. taxes", aliases) == ["invoice", "taxes"]

    @pytest.mark.parametrize(
        "text",
        ["работа1. fix bug\n2. review PR", "работаю 1. fix bug\n2. review PR"],
    )
    def test_not_a_prefix(self, text: str) -> None:
        """Test that words starting with an alias are not prefixes."""
        assert split_multi_capture(text) == [text]

    def test_prefix_only(self) -> None:
        """Test that a bare prefix gives no items."""
        assert split_multi_capture("работа:") == []

    def test_prefix_dash_single_item(self) -> None:
        """Test that a dash after the prefix is not kept on a single item."""
        assert split_multi_capture("работа:- сделать отчет") == ["сделать отчет"]

    def test_prefix_with_separators_only(self) -> None:
        """Test that a prefix followed only by separators gives no items."""
        assert split_multi_capture("работа: - ") == []
