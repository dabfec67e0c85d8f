"""Tests for checklist line matching."""

from todo_collector.matcher import (
    iter_unchecked,
    match_checked,
    match_task_line,
    match_unchecked_line,
    parse_header,
    split_frontmatter,
    strip_countdown,
)


class TestIterUnchecked:
    """Tests for scanning source documents."""

    def test_basic(self):
        text = "# Notes\n- [ ] Buy milk\nSome text\n- [ ] Call Bob\n"
        assert [m.text for m in iter_unchecked(text)] == ["Buy milk", "Call Bob"]

    def test_indented_items_keep_indent(self):
        matches = list(iter_unchecked("- [ ] Parent\n  - [ ] Child\n\t- [ ] Tabbed\n"))
        assert [(m.indent, m.text) for m in matches] == [
            ("", "Parent"), ("  ", "Child"), ("\t", "Tabbed"),
        ]

    def test_indent_does_not_span_blank_lines(self):
        matches = list(iter_unchecked("intro\n\n- [ ] Task\n"))
        assert matches[0].indent == ""

    def test_ignores_checked_and_other_bullets(self):
        text = "- [x] Done\n- [X] Also done\n* [ ] Star bullet\n-[ ] No space\n"
        assert list(iter_unchecked(text)) == []

    def test_requires_text(self):
        assert list(iter_unchecked("- [ ]\n")) == []

    def test_trims_text(self):
        assert [m.text for m in iter_unchecked("- [ ] Padded   \n")] == ["Padded"]

    def test_scans_are_independent(self):
        """A second scan of the same text yields the same matches."""
        text = "- [ ] A\n- [ ] B\n"
        first = list(iter_unchecked(text))
        second = list(iter_unchecked(text))
        assert first == second
        assert len(first) == 2

    def test_lazy(self):
        matches = iter_unchecked("- [ ] A\n- [ ] B\n")
        assert next(matches).text == "A"


class TestAggregateLines:
    """Tests for the lenient aggregate-line matchers."""

    def test_checked(self):
        assert match_checked("- [x] Fix bug [[Notes]]") == "Fix bug [[Notes]]"

    def test_checked_uppercase_x(self):
        assert match_checked("- [X] Fix bug [[Notes]]") == "Fix bug [[Notes]]"

    def test_checked_duplicated_dash(self):
        assert match_checked("- - [x] Fix bug") == "Fix bug"

    def test_checked_without_dash(self):
        assert match_checked("[x] Fix bug") == "Fix bug"

    def test_checked_strips_countdown(self):
        assert match_checked("- [x] Fix bug [[Notes]] (2 days left)") == "Fix bug [[Notes]]"
        assert match_checked("- [x] Fix bug [[Notes]] (1 day left)") == "Fix bug [[Notes]]"

    def test_checked_rejects_unchecked(self):
        assert match_checked("- [ ] Fix bug") is None

    def test_unchecked_line(self):
        assert match_unchecked_line("- [ ] Fix bug [[Notes]]") == "Fix bug [[Notes]]"
        assert match_unchecked_line("- [x] Fix bug") is None

    def test_task_line_either_state(self):
        assert match_task_line("- [ ] Open") == "Open"
        assert match_task_line("- [x] Closed") == "Closed"
        assert match_task_line("## Today") is None

    def test_strip_countdown_only_at_end(self):
        assert strip_countdown("Wait (2 days left) then go") == "Wait (2 days left) then go"


class TestHeaders:
    def test_plain(self):
        assert parse_header("## Today") == "today"

    def test_count_stripped(self):
        assert parse_header("## Next 7 days (12)") == "next 7 days"

    def test_not_a_section_header(self):
        assert parse_header("# Title") is None
        assert parse_header("### Sub") is None


class TestFrontmatter:
    def test_split(self):
        content = "---\ntags: todo\n---\n- [ ] A\n"
        assert split_frontmatter(content) == ("---\ntags: todo\n---\n", "- [ ] A\n")

    def test_leading_blank_lines_allowed(self):
        frontmatter, body = split_frontmatter("\n---\na: 1\n---\nbody")
        assert frontmatter == "---\na: 1\n---\n"
        assert body == "body"

    def test_rule_after_content_is_not_frontmatter(self):
        content = "- [ ] A\n---\nCompleted\n"
        assert split_frontmatter(content) == ("", content)

    def test_unclosed_rule_is_not_frontmatter(self):
        """A completed section at the very top has a single rule."""
        content = "\n\n---\nCompleted\n\n- [x] A [[N]]\n"
        assert split_frontmatter(content) == ("", content)
