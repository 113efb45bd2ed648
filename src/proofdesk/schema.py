# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Request/response contract shared by the API, the CLI and the web UI.

Wire format is camelCase JSON (``inputText``, ``tonePreset``...); the models
accept and emit those names while Python code uses snake_case attributes.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Mode = Literal["proofread", "translate_proofread"]

TonePreset = Literal[
    "executive",
    "neutral_pro",
    "diplomatic",
    "casual",
    "friendly",
    "funny",
    "very_concise",
    "very_clear",
]

RewriteStrength = Literal["none", "light", "medium", "strong"]

Lang = Literal["fr", "en", "de"]

ChangeCategory = Literal[
    "spelling",
    "grammar",
    "punctuation",
    "style",
    "clarity",
    "concision",
    "tone",
    "translation",
    "anglicism",
    "formatting",
]

Severity = Literal["info", "important"]

CHANGE_CATEGORIES = (
    "spelling", "grammar", "punctuation", "style", "clarity",
    "concision", "tone", "translation", "anglicism", "formatting",
)

REWRITE_STEPS = ("none", "light", "medium", "strong")

TONE_LABELS: Dict[str, str] = {
    "executive": "Directeur / Executive",
    "neutral_pro": "Professionnel neutre",
    "diplomatic": "Diplomatique",
    "casual": "Casual",
    "friendly": "Amical",
    "funny": "Drôle / léger",
    "very_concise": "Très concis",
    "very_clear": "Très clair / pédagogique",
}

LANG_LABELS: Dict[str, str] = {
    "fr": "Français",
    "en": "English",
    "de": "Deutsch",
}

REWRITE_LABELS: Dict[str, str] = {
    "none": "None",
    "light": "Light",
    "medium": "Medium",
    "strong": "Strong",
}

INPUT_MAX_CHARS = 12000
MAX_CHANGES = 25
MAX_LEARNING_ITEMS = 5

# Hard rejection threshold relative to the soft limit shown in the UI
INPUT_HARD_LIMIT_FACTOR = 1.5
INPUT_MIN_CHARS = 2


class WireModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUESTS
# ============================================================================

class ProcessRequest(WireModel):
    mode: Mode = "proofread"
    input_text: Optional[str] = None
    tone_preset: TonePreset = "neutral_pro"
    custom_instructions: Optional[str] = None
    rewrite_strength: RewriteStrength = "none"
    target_lang: Optional[Lang] = None
    email_mode: bool = False
    output_format: Literal["markdown"] = "markdown"


class ExplainRequest(WireModel):
    input_text: Optional[str] = None
    mode: Mode = "proofread"
    rewrite_strength: RewriteStrength = "none"
    target_lang: Optional[Lang] = None


# ============================================================================
# RESPONSE ITEMS
# ============================================================================

class ChangeLocation(WireModel):
    start_char: Optional[int] = None
    end_char: Optional[int] = None
    sentence_index: Optional[int] = None


class ChangeItem(WireModel):
    id: str
    category: ChangeCategory = "style"
    before: str = ""
    after: str = ""
    explanation: str = ""
    rule: Optional[str] = None
    severity: Severity = "info"
    location: Optional[ChangeLocation] = None


class LearningItem(WireModel):
    id: str
    title: str = ""
    explanation: str = ""
    example_before: Optional[str] = None
    example_after: Optional[str] = None
    category: ChangeCategory = "style"


# ============================================================================
# RESPONSES
# ============================================================================

class ProcessMeta(WireModel):
    detected_source_lang: Optional[Lang] = None
    target_lang: Optional[Lang] = None
    rewrite_strength: RewriteStrength
    tone_preset: TonePreset
    model: str
    latency_ms: int


class ProcessResponse(WireModel):
    output_markdown: str
    explanation: str = ""
    meta: ProcessMeta
    parse_warning: Optional[str] = None


class ExplainMeta(WireModel):
    model: str
    latency_ms: int


class ExplainResponse(WireModel):
    changes: List[ChangeItem] = Field(default_factory=list)
    learning: List[LearningItem] = Field(default_factory=list)
    meta: ExplainMeta
    parse_warning: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


# ============================================================================
# VALIDATION
# ============================================================================

def validate_input(
    input_text: Optional[str],
    mode: str = "proofread",
    target_lang: Optional[str] = None,
    max_chars: int = INPUT_MAX_CHARS,
) -> Optional[str]:
    """
    Check a request's text and mode/language combination.

    Returns:
        An error message for the client, or None when the input is acceptable.
    """
    if not input_text or len(input_text.strip()) < INPUT_MIN_CHARS:
        return f"inputText is required (min {INPUT_MIN_CHARS} chars)"
    if len(input_text) > max_chars * INPUT_HARD_LIMIT_FACTOR:
        return f"inputText too long (max ~{max_chars} chars)"
    if mode == "translate_proofread" and not target_lang:
        return "targetLang is required in translate_proofread mode"
    return None


def options_payload(max_chars: int = INPUT_MAX_CHARS) -> dict:
    """Enumerations, labels and limits the UI builds its controls from."""
    return {
        "modes": ["proofread", "translate_proofread"],
        "tones": TONE_LABELS,
        "langs": LANG_LABELS,
        "rewriteSteps": list(REWRITE_STEPS),
        "rewriteLabels": REWRITE_LABELS,
        "categories": list(CHANGE_CATEGORIES),
        "inputMaxChars": max_chars,
    }
