"""
Tests for the deck parser

Author: termdeck contributors | 2026-10-19
"""

from dataclasses import fields

import pytest

from termdeck.models import (
    CodeBlock,
    Color,
    Deck,
    EvaluationResult,
    PlainText,
    StyledRun,
    StyledText,
)
from termdeck.parser import ParseError, load_deck, parse_deck, resolve_directives


class TestSlideSplitting:
    """Tests for delimiter handling."""

    def test_two_slide_example(self):
        """Title, body and a second untitled slide."""
        deck = parse_deck("| Title\nBody\n---\nSecond")

        assert len(deck) == 2
        first, second = deck[0], deck[1]
        assert first.title.plain == "Title"
        assert len(first.segments) == 1
        assert isinstance(first.segments[0], PlainText)
        assert first.segments[0].text.plain == "Body"
        assert second.title is None
        assert [s.text.plain for s in second.segments] == ["Second"]

    @pytest.mark.parametrize("text", [
        "one",
        "one\n---\ntwo",
        "---\n---\n---",
        "a\n---\n```\ncode\n```\n---\nb\n",
        "| T\n\n---\n\n---\nend\n",
    ])
    def test_delimiter_count_matches_slide_count(self, text):
        """Number of delimiters is always len(deck) - 1."""
        deck = parse_deck(text)
        delimiters = sum(1 for line in text.split("\n") if line == "---")

        assert len(deck) == delimiters + 1

    def test_slide_indices_are_positions(self, sample_deck):
        assert [s.index for s in sample_deck] == [0, 1, 2]

    def test_delimiter_must_match_exactly(self):
        """Indented or padded dashes are ordinary text."""
        deck = parse_deck("a\n --- \n----\nb")

        assert len(deck) == 1
        assert [s.text.plain for s in deck[0].segments] == ["a", " --- ", "----", "b"]

    def test_empty_input_is_one_empty_slide(self):
        deck = parse_deck("")

        assert len(deck) == 1
        assert deck[0].title is None
        assert deck[0].segments == ()

    def test_trailing_delimiter_opens_empty_final_slide(self):
        deck = parse_deck("only\n---\n")

        assert len(deck) == 2
        assert deck[1].segments == ()

    def test_crlf_line_endings(self):
        deck = parse_deck("| T\r\nbody\r\n---\r\nnext\r\n")

        assert len(deck) == 2
        assert deck[0].title.plain == "T"
        assert deck[0].segments[0].text.plain == "body"

    def test_source_recorded(self, sample_deck):
        assert sample_deck.source == "sample.deck"


class TestTitles:
    """Tests for title-line handling."""

    def test_title_not_emitted_as_segment(self):
        deck = parse_deck("| Hello")

        assert deck[0].title.plain == "Hello"
        assert deck[0].segments == ()

    def test_first_title_wins(self):
        """A second title line stays in the body, marker included."""
        deck = parse_deck("| First\ntext\n| Second")

        slide = deck[0]
        assert slide.title.plain == "First"
        assert [s.text.plain for s in slide.segments] == ["text", "| Second"]

    def test_title_may_appear_after_body(self):
        deck = parse_deck("intro\n| Late title")

        assert deck[0].title.plain == "Late title"
        assert [s.text.plain for s in deck[0].segments] == ["intro"]

    def test_title_colors(self, sample_deck):
        title = sample_deck[0].title

        assert title.runs == (StyledRun("Welcome", Color.CYAN),)

    def test_title_inside_fence_is_code(self):
        deck = parse_deck("```\n| not a title\n```")

        assert deck[0].title is None
        assert deck[0].segments[0].lines == ("| not a title",)


class TestColorDirectives:
    """Tests for inline color directives."""

    def test_green_then_red(self):
        text = resolve_directives("\\gHello\\rWorld", 1)

        assert text.runs == (
            StyledRun("Hello", Color.GREEN),
            StyledRun("World", Color.RED),
        )
        assert "\\" not in text.plain

    def test_text_before_directive_is_default(self):
        text = resolve_directives("plain \\bblue", 1)

        assert text.runs == (
            StyledRun("plain ", Color.DEFAULT),
            StyledRun("blue", Color.BLUE),
        )

    def test_default_directive_resets(self, sample_deck):
        runs = sample_deck[0].segments[0].text.runs

        assert [r.color for r in runs] == [Color.DEFAULT, Color.GREEN, Color.DEFAULT]
        assert runs[1].text == "plain-text"

    def test_directives_reset_at_line_end(self):
        deck = parse_deck("\\rred line\nnext line")

        first, second = deck[0].segments
        assert first.text.runs == (StyledRun("red line", Color.RED),)
        assert second.text.runs == (StyledRun("next line", Color.DEFAULT),)

    def test_escaped_backslash(self):
        text = resolve_directives("C:\\\\temp", 1)

        assert text.plain == "C:\\temp"
        assert len(text.runs) == 1

    def test_adjacent_directives_drop_empty_runs(self):
        text = resolve_directives("\\g\\rX", 1)

        assert text.runs == (StyledRun("X", Color.RED),)

    def test_unknown_code_is_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            parse_deck("ok\n---\nbad \\q here")

        err = exc_info.value
        assert err.line == 3
        assert err.code == "q"
        assert "'q'" in err.reason

    def test_trailing_marker_is_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            parse_deck("dangling \\")

        assert exc_info.value.line == 1

    def test_code_lines_are_not_scanned(self):
        deck = parse_deck("```\nprint('\\q')\n```")

        assert deck[0].segments[0].lines == ("print('\\q')",)


class TestCodeBlocks:
    """Tests for fenced code blocks."""

    def test_round_trip_preserves_whitespace(self):
        body = "  def f(x):\n\n\treturn x   \n    "
        deck = parse_deck(f"```python\n{body}\n```")

        block = deck[0].segments[0]
        assert isinstance(block, CodeBlock)
        assert block.source == body

    def test_language_and_evaluable_flag(self, sample_deck):
        blocks = [b for _, b in sample_deck[1].code_blocks()]

        assert [(b.language, b.evaluable) for b in blocks] == [("python", True), ("sh", False)]
        assert blocks[0].lines == ("x = 6", "x * 7")

    def test_untagged_evaluable_block(self):
        block = parse_deck("```!\n1 + 1\n```")[0].segments[0]

        assert block.language == ""
        assert block.evaluable is True

    def test_fence_line_recorded(self, sample_deck):
        _, block = sample_deck[1].code_blocks()[0]

        assert block.line == 8

    def test_info_string_with_spaces_is_text(self):
        deck = parse_deck("```python extra\nstill text")

        assert all(isinstance(s, PlainText) for s in deck[0].segments)

    def test_closing_fence_allows_trailing_whitespace(self):
        deck = parse_deck("```\ncode\n```   \nafter")

        block, after = deck[0].segments
        assert block.lines == ("code",)
        assert after.text.plain == "after"

    def test_unterminated_at_slide_boundary(self):
        with pytest.raises(ParseError) as exc_info:
            parse_deck("intro\n```python\nx = 1\n---\nnext")

        assert exc_info.value.line == 2
        assert "unterminated" in exc_info.value.reason

    def test_unterminated_at_end_of_input(self):
        with pytest.raises(ParseError) as exc_info:
            parse_deck("```\nnever closed")

        assert exc_info.value.line == 1
        assert "end of input" in exc_info.value.reason

    def test_segment_order(self, sample_deck):
        kinds = [type(s).__name__ for s in sample_deck[1].segments]

        assert kinds == [
            "PlainText", "PlainText", "CodeBlock", "PlainText",
            "PlainText", "PlainText", "CodeBlock",
        ]


class TestBlankLines:
    """Blank lines keep the source's vertical spacing."""

    def test_blank_lines_are_segments(self):
        deck = parse_deck("a\n\n\nb")

        segments = deck[0].segments
        assert len(segments) == 4
        assert [s.is_blank for s in segments] == [False, True, True, False]


class TestDeckModel:
    """Tests for Deck invariants."""

    def test_empty_deck_rejected(self):
        with pytest.raises(ValueError):
            Deck(slides=())

    def test_evaluation_result_fields(self):
        result = EvaluationResult.failed("boom", timed_out=True, duration=1.23456)

        assert [f.name for f in fields(EvaluationResult)] == [
            "success", "output", "error", "timed_out", "duration",
        ]
        assert result.to_dict() == {
            "success": False,
            "output": "",
            "error": "boom",
            "timed_out": True,
            "duration": 1.235,
        }
        assert result.text == "boom"

    def test_styled_text_built_from_runs(self):
        text = StyledText((StyledRun("a", Color.RED), StyledRun("bc")))

        assert text.plain == "abc"
        assert len(text) == 3
        assert not hasattr(StyledText, "from_plain")

    def test_to_dict(self, sample_deck):
        data = sample_deck.to_dict()

        assert data["slide_count"] == 3
        assert data["slides"][1]["title"] == "Code"
        assert data["slides"][1]["segments"][2]["evaluable"] is True


class TestLoadDeck:
    """Tests for reading decks from disk."""

    def test_load(self, sample_file):
        deck = load_deck(sample_file)

        assert len(deck) == 3
        assert deck.source == str(sample_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_deck(tmp_path / "nope.deck")

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "bad.deck"
        path.write_bytes(b"fine\n\xff\xfe broken\n")

        with pytest.raises(ParseError) as exc_info:
            load_deck(path)

        assert exc_info.value.line == 2
