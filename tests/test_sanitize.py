# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Unit tests for LLM output recovery in sanitize.py.

Covers the three JSON recovery strategies, normalization of loosely-shaped
items, and the raw-text fallback.
"""

import json

import pytest

from proofdesk.sanitize import (
    PARSE_WARNING,
    normalize_change,
    normalize_leading_spaces,
    normalize_learning,
    parse_explain_output,
    parse_process_output,
    safe_parse,
    strip_chatter,
)


# ---------------------------------------------------------------------------
# safe_parse
# ---------------------------------------------------------------------------

class TestSafeParse:
    def test_plain_json(self):
        assert safe_parse('{"a": 1}') == {"a": 1}

    def test_json_fence(self):
        raw = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
        assert safe_parse(raw) == {"a": 1}

    def test_bare_fence(self):
        assert safe_parse('```\n{"a": 2}\n```') == {"a": 2}

    def test_brace_span_with_chatter(self):
        assert safe_parse('Sure! {"a": {"b": 3}} Hope this helps.') == {"a": {"b": 3}}

    def test_fence_without_json_falls_through_to_braces(self):
        raw = '```\nnot json\n``` but then {"a": 4}'
        assert safe_parse(raw) == {"a": 4}

    @pytest.mark.parametrize("raw", ["", "   ", "no json here", "{broken", "[1, 2, 3]", '"string"'])
    def test_unparseable_returns_none(self, raw):
        assert safe_parse(raw) is None

    def test_non_object_json_is_not_success(self):
        assert safe_parse("42") is None

    def test_none_input(self):
        assert safe_parse(None) is None


# ---------------------------------------------------------------------------
# normalize_change / normalize_learning
# ---------------------------------------------------------------------------

class TestNormalizeChange:
    def test_full_item(self):
        item = normalize_change({
            "id": "x1",
            "category": "grammar",
            "before": "il a manger",
            "after": "il a mangé",
            "explanation": "Participe passé.",
            "rule": "Accord du participe",
            "severity": "important",
            "location": {"startChar": 3, "endChar": 14},
        }, 0)
        assert item.id == "x1"
        assert item.category == "grammar"
        assert item.severity == "important"
        assert item.rule == "Accord du participe"
        assert item.location.start_char == 3
        assert item.location.end_char == 14
        assert item.location.sentence_index is None

    def test_defaults(self):
        item = normalize_change({}, 4)
        assert item.id == "c4"
        assert item.category == "style"
        assert item.before == ""
        assert item.after == ""
        assert item.severity == "info"
        assert item.rule is None
        assert item.location is None

    def test_unknown_category_becomes_style(self):
        assert normalize_change({"category": "vibes"}, 0).category == "style"

    @pytest.mark.parametrize("severity", ["Important", "high", "warning", None, 1])
    def test_severity_is_important_only_on_exact_match(self, severity):
        assert normalize_change({"severity": severity}, 0).severity == "info"

    def test_non_string_fields_coerced(self):
        item = normalize_change({"id": 7, "before": 12, "rule": ["x"]}, 2)
        assert item.id == "c2"
        assert item.before == "12"
        assert item.rule is None

    def test_invalid_location_dropped(self):
        assert normalize_change({"location": "line 3"}, 0).location is None
        assert normalize_change({"location": {"startChar": "3"}}, 0).location is None


class TestNormalizeLearning:
    def test_full_item(self):
        item = normalize_learning({
            "id": "tip",
            "title": "Anglicismes",
            "explanation": "Préférer « courriel ».",
            "exampleBefore": "un email",
            "exampleAfter": "un courriel",
            "category": "anglicism",
        }, 0)
        assert item.id == "tip"
        assert item.example_before == "un email"
        assert item.example_after == "un courriel"
        assert item.category == "anglicism"

    def test_defaults(self):
        item = normalize_learning({}, 1)
        assert item.id == "l1"
        assert item.title == ""
        assert item.example_before is None
        assert item.category == "style"


# ---------------------------------------------------------------------------
# parse_process_output
# ---------------------------------------------------------------------------

class TestParseProcessOutput:
    def test_json_output(self):
        raw = json.dumps({"correctedText": "  Bonjour.  ", "explanation": " Rien à corriger. "})
        out = parse_process_output(raw)
        assert out.corrected_text == "Bonjour."
        assert out.explanation == "Rien à corriger."
        assert out.parse_warning is None

    def test_output_markdown_alias(self):
        out = parse_process_output('{"outputMarkdown": "Hello."}')
        assert out.corrected_text == "Hello."
        assert out.explanation == ""

    def test_corrected_text_wins_over_alias(self):
        out = parse_process_output('{"correctedText": "A", "outputMarkdown": "B"}')
        assert out.corrected_text == "A"

    def test_fenced_json(self):
        raw = '```json\n{"correctedText": "Fixed.", "explanation": "x"}\n```'
        assert parse_process_output(raw).corrected_text == "Fixed."

    def test_missing_text_is_empty(self):
        out = parse_process_output('{"explanation": "nothing"}')
        assert out.corrected_text == ""
        assert out.parse_warning is None

    def test_raw_fallback(self):
        out = parse_process_output("Here is the corrected text: Bonjour à tous.")
        assert out.corrected_text == "Bonjour à tous."
        assert out.explanation == ""
        assert out.parse_warning == PARSE_WARNING

    def test_raw_fallback_keeps_plain_text(self):
        out = parse_process_output("Just a sentence.")
        assert out.corrected_text == "Just a sentence."
        assert out.parse_warning == PARSE_WARNING

    def test_empty_output(self):
        out = parse_process_output("")
        assert out.corrected_text == ""
        assert out.parse_warning == PARSE_WARNING


# ---------------------------------------------------------------------------
# parse_explain_output
# ---------------------------------------------------------------------------

class TestParseExplainOutput:
    def test_valid_output(self):
        raw = json.dumps({
            "changes": [{"id": "c1", "category": "spelling", "before": "a", "after": "b"}],
            "learning": [{"title": "T", "explanation": "E"}],
        })
        out = parse_explain_output(raw)
        assert len(out.changes) == 1
        assert out.changes[0].category == "spelling"
        assert out.learning[0].id == "l0"
        assert out.parse_warning is None

    def test_truncates_to_limits(self):
        raw = json.dumps({
            "changes": [{"before": str(i)} for i in range(40)],
            "learning": [{"title": str(i)} for i in range(10)],
        })
        out = parse_explain_output(raw, max_changes=25, max_learning=5)
        assert len(out.changes) == 25
        assert len(out.learning) == 5
        assert out.changes[-1].id == "c24"

    def test_non_dict_items_skipped(self):
        raw = json.dumps({"changes": ["oops", {"before": "x"}, 3], "learning": "none"})
        out = parse_explain_output(raw)
        assert len(out.changes) == 1
        assert out.changes[0].id == "c1"
        assert out.learning == []

    def test_missing_lists(self):
        out = parse_explain_output("{}")
        assert out.changes == []
        assert out.learning == []
        assert out.parse_warning is None

    def test_unparseable(self):
        out = parse_explain_output("I could not do that.")
        assert out.changes == []
        assert out.learning == []
        assert out.parse_warning == PARSE_WARNING


# ---------------------------------------------------------------------------
# Free-text cleanup
# ---------------------------------------------------------------------------

class TestStripChatter:
    @pytest.mark.parametrize("raw,expected", [
        ("Corrected: Hello.", "Hello."),
        ("Sure! Hello.", "Hello."),
        ("Of course, Hello.", "Hello."),
        ("Hello. Let me know if you need anything else.", "Hello."),
        ("Hello. I hope this helps!", "Hello."),
        ("Voici le texte corrigé : Bonjour.", "Bonjour."),
        ("```text\nHello.\n```", "Hello."),
    ])
    def test_removes_chatter(self, raw, expected):
        assert strip_chatter(raw) == expected

    def test_plain_text_untouched(self):
        assert strip_chatter("  Hello world.  ") == "Hello world."

    @pytest.mark.parametrize("text", [
        "Of course we will meet on Monday.",
        "Certainly not today.",
        "Certainly the results are good.",
    ])
    def test_opener_words_in_sentence_kept(self, text):
        assert strip_chatter(text) == text

    def test_raw_reply_keeps_leading_of_course(self):
        out = parse_process_output("Of course we will meet on Monday")
        assert out.corrected_text == "Of course we will meet on Monday"


class TestNormalizeLeadingSpaces:
    def test_single_space_prefix_removed(self):
        assert normalize_leading_spaces(" a\n b\n\n c") == "a\nb\n\nc"

    def test_mixed_indent_untouched(self):
        text = " a\n  - nested"
        assert normalize_leading_spaces(text) == text

    def test_tabs_untouched(self):
        text = " a\n\tb"
        assert normalize_leading_spaces(text) == text

    def test_no_prefix_untouched(self):
        assert normalize_leading_spaces("a\n b") == "a\n b"
