# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Best-effort recovery of JSON from LLM free-text output.

Models are asked for a bare JSON object but often wrap it in code fences,
prepend a sentence, or ignore the format entirely. safe_parse() tries, in
order: the whole text, the first fenced block, the outermost {...} span.
When nothing parses, callers fall back to the raw text and attach a
parse warning.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .schema import (
    CHANGE_CATEGORIES,
    MAX_CHANGES,
    MAX_LEARNING_ITEMS,
    ChangeItem,
    ChangeLocation,
    LearningItem,
)

PARSE_WARNING = (
    "Impossible de parser la réponse structurée du LLM. Explications indisponibles."
)

FENCE_RE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)```")
BRACE_RE = re.compile(r"\{[\s\S]*\}")

_VALID_CATEGORIES = frozenset(CHANGE_CATEGORIES)


@dataclass
class ProcessOutput:
    corrected_text: str
    explanation: str = ""
    parse_warning: Optional[str] = None


@dataclass
class ExplainOutput:
    changes: List[ChangeItem] = field(default_factory=list)
    learning: List[LearningItem] = field(default_factory=list)
    parse_warning: Optional[str] = None


# ============================================================================
# JSON RECOVERY
# ============================================================================

def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def safe_parse(raw: str) -> Optional[Dict[str, Any]]:
    """
    Recover a JSON object from raw model output.

    Returns:
        The parsed object, or None when no strategy produced a JSON object.
    """
    if not raw or not raw.strip():
        return None

    # 1) The whole response
    data = _loads_object(raw)
    if data is not None:
        return data

    # 2) First fenced code block
    fence = FENCE_RE.search(raw)
    if fence and fence.group(1).strip():
        data = _loads_object(fence.group(1).strip())
        if data is not None:
            return data

    # 3) Outermost brace span (greedy: first "{" to last "}")
    brace = BRACE_RE.search(raw)
    if brace:
        data = _loads_object(brace.group(0))
        if data is not None:
            return data

    return None


# ============================================================================
# NORMALIZATION
# ============================================================================

def _category(value: Any) -> str:
    if isinstance(value, str) and value in _VALID_CATEGORIES:
        return value
    return "style"


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _location(value: Any) -> Optional[ChangeLocation]:
    if not isinstance(value, dict):
        return None
    fields = {}
    for key, attr in (("startChar", "start_char"), ("endChar", "end_char"), ("sentenceIndex", "sentence_index")):
        v = value.get(key)
        if isinstance(v, int) and not isinstance(v, bool):
            fields[attr] = v
    return ChangeLocation(**fields) if fields else None


def normalize_change(item: Dict[str, Any], index: int) -> ChangeItem:
    """Coerce one loosely-shaped change object into a ChangeItem."""
    return ChangeItem(
        id=item["id"] if isinstance(item.get("id"), str) else f"c{index}",
        category=_category(item.get("category")),
        before=_text(item.get("before")),
        after=_text(item.get("after")),
        explanation=_text(item.get("explanation")),
        rule=_opt_str(item.get("rule")),
        severity="important" if item.get("severity") == "important" else "info",
        location=_location(item.get("location")),
    )


def normalize_learning(item: Dict[str, Any], index: int) -> LearningItem:
    """Coerce one loosely-shaped learning object into a LearningItem."""
    return LearningItem(
        id=item["id"] if isinstance(item.get("id"), str) else f"l{index}",
        title=_text(item.get("title")),
        explanation=_text(item.get("explanation")),
        example_before=_opt_str(item.get("exampleBefore")),
        example_after=_opt_str(item.get("exampleAfter")),
        category=_category(item.get("category")),
    )


def _normalize_list(value: Any, normalizer, limit: int) -> list:
    if not isinstance(value, list):
        return []
    items = [normalizer(item, i) for i, item in enumerate(value) if isinstance(item, dict)]
    return items[:limit]


# ============================================================================
# PUBLIC PARSERS
# ============================================================================

def parse_process_output(raw: str) -> ProcessOutput:
    """Parse the corrected-text call; fall back to the raw text as the result."""
    data = safe_parse(raw)
    if data is None:
        cleaned = normalize_leading_spaces(strip_chatter(raw or ""))
        return ProcessOutput(corrected_text=cleaned, parse_warning=PARSE_WARNING)

    corrected = data.get("correctedText")
    if not isinstance(corrected, str):
        corrected = data.get("outputMarkdown")
    return ProcessOutput(
        corrected_text=normalize_leading_spaces(corrected.strip()) if isinstance(corrected, str) else "",
        explanation=data["explanation"].strip() if isinstance(data.get("explanation"), str) else "",
    )


def parse_explain_output(
    raw: str,
    max_changes: int = MAX_CHANGES,
    max_learning: int = MAX_LEARNING_ITEMS,
) -> ExplainOutput:
    """Parse the explanations call; empty lists plus a warning when unparseable."""
    data = safe_parse(raw)
    if data is None:
        return ExplainOutput(parse_warning=PARSE_WARNING)

    return ExplainOutput(
        changes=_normalize_list(data.get("changes"), normalize_change, max_changes),
        learning=_normalize_list(data.get("learning"), normalize_learning, max_learning),
    )


# ============================================================================
# FREE-TEXT CLEANUP
# ============================================================================

LABEL_PATTERNS = [
    r'^corrected(?:\s+text)?:\s*',
    r'^output:\s*',
    r'^fixed(?:\s+text)?:\s*',
    r'^edited(?:\s+text)?:\s*',
    r'^result:\s*',
    r'^here(?:\s+is|\s+are|\'s)\s+(?:the\s+)?(?:corrected|fixed|edited|translated)(?:\s+text)?:\s*',
    r'^voici\s+(?:le\s+)?texte\s+(?:corrigé|traduit)\s*:\s*',
]

OPENER_PATTERNS = [
    r'^sure[,!.]\s+(?:i\'ll|i will|let me|here\'s|here is)[^.!?\n]*[.!?]?\s*',
    r'^sure[,!]\s*$',
    r'^sure[,!]\s+',
    r'^i\'ve\s+(?:corrected|fixed|edited|translated)[^.!?\n]*[.!?]\s*',
    r'^i have\s+(?:corrected|fixed|edited|translated)[^.!?\n]*[.!?]\s*',
    r'^here\'s\s+(?:the\s+)?(?:corrected|fixed|edited|translated)[^:]*:\s*',
    r'^here is\s+(?:the\s+)?(?:corrected|fixed|edited|translated|text)[^:]*:\s*',
    r'^of course[,!.]\s*',
    r'^certainly[,!.]\s*',
]

TRAILING_PATTERNS = [
    r'\s*let me know if[^.!?\n]*[.!?]?\s*$',
    r'\s*i hope this helps[.!?]?\s*$',
    r'\s*feel free to[^.!?\n]*[.!?]?\s*$',
    r'\s*please let me know[^.!?\n]*[.!?]?\s*$',
]

TEXT_FENCE_RE = re.compile(
    r'^```(?:text|plain|markdown|md)?\s*\n?(.*?)\n?```\s*$',
    re.DOTALL | re.IGNORECASE,
)


def strip_chatter(result: str) -> str:
    """
    Remove conversational prefixes, trailing meta-commentary and a wrapping
    code fence that models add around a plain-text answer.
    """
    result = result.strip()

    for pattern in LABEL_PATTERNS:
        result = re.sub(pattern, '', result, flags=re.IGNORECASE)

    for pattern in OPENER_PATTERNS:
        result = re.sub(pattern, '', result, flags=re.IGNORECASE)

    for pattern in TRAILING_PATTERNS:
        result = re.sub(pattern, '', result, flags=re.IGNORECASE)

    fence = TEXT_FENCE_RE.match(result)
    if fence:
        result = fence.group(1)

    return result.strip()


def normalize_leading_spaces(text: str) -> str:
    """
    Drop the single leading space some models add to every line.

    Intentional indentation (tabs, nested list items) is left alone.
    """
    lines = text.splitlines()
    non_empty = [line for line in lines if line.strip()]

    if not non_empty:
        return text

    if any(line.startswith("\t") for line in non_empty):
        return text

    if all(line.startswith(" ") and not line.startswith("  ") for line in non_empty):
        return "\n".join(
            line[1:] if line.startswith(" ") else line
            for line in lines
        )

    return text
