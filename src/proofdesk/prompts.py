# SPDX-License-Identifier: MIT
# Copyright (c) 2025-2026 Soroush Yousefpour
"""
Prompt builders for the two LLM calls.

The process call returns the corrected (or translated) text; the explain
call returns the structured list of changes and learning points. Both are
pure functions of the request, so the two calls can run in parallel.

To add a tone preset, add an entry to TONE_INSTRUCTIONS and a label to
schema.TONE_LABELS.
"""

from typing import Dict, List, Optional, Union

from .schema import (
    CHANGE_CATEGORIES,
    MAX_CHANGES,
    MAX_LEARNING_ITEMS,
    ExplainRequest,
    ProcessRequest,
)

# ============================================================================
# INSTRUCTION TABLES
# ============================================================================

TONE_INSTRUCTIONS: Dict[str, str] = {
    "executive": "Use a direct, authoritative, executive tone. Be decisive and strategic.",
    "neutral_pro": "Use a neutral, professional tone. Clear and balanced.",
    "diplomatic": "Use a diplomatic, tactful tone. Be considerate and measured.",
    "casual": "Use a casual, relaxed tone. Natural and approachable.",
    "friendly": "Use a warm, friendly tone. Personable and engaging.",
    "funny": "Use a light, witty tone. Inject humor where appropriate without undermining the message.",
    "very_concise": "Be extremely concise. Remove all filler. Every word must earn its place.",
    "very_clear": "Prioritize clarity and pedagogy. Explain concepts simply. Use short sentences.",
}

REWRITE_INSTRUCTIONS: Dict[str, str] = {
    "none": (
        "Make only minimal corrections (spelling, grammar, punctuation). Do NOT rewrite or "
        "restructure sentences. Preserve the original wording as much as possible. Only fix "
        "clear errors and make micro-improvements."
    ),
    "light": (
        "Correct errors and lightly clarify. You may shorten slightly or improve word choice, "
        "but keep the original structure and voice intact."
    ),
    "medium": (
        "Correct errors, reorganize sentences for better flow, remove redundancies. You may "
        "restructure paragraphs but preserve the overall meaning and key points."
    ),
    "strong": (
        "Rewrite freely for maximum clarity and impact. You may completely restructure, but "
        "you MUST preserve the original meaning and all key information. Do not invent new content."
    ),
}

DEFAULT_TONE = "neutral_pro"
DEFAULT_REWRITE = "none"

PRESERVE_STRUCTURE_NOTE = (
    "IMPORTANT: Preserve the original paragraph structure exactly. "
    "Do not merge or split paragraphs."
)
ADJUST_STRUCTURE_NOTE = (
    "You may adjust paragraph structure if it improves readability, "
    "but keep the overall organization similar."
)

# Closing formula per language used in email mode
EMAIL_CLOSINGS: Dict[str, str] = {
    "French": "Meilleures salutations,",
    "English": "Best regards,",
    "German": "Mit freundlichen Grüßen,",
}

EDITORIAL_RULES = """## Editorial rules
- Never invent new content or add information not present in the original (exception: email salutations if email mode is enabled).
- Preserve the original meaning faithfully.
- Produce clean Markdown output (paragraphs, lists, bold/italic as appropriate).
- Keep the same Markdown structure the user used (if they used lists, keep lists; if plain paragraphs, keep paragraphs)."""

PROCESS_OUTPUT_FORMAT = """## Output format
Return ONLY a JSON object with exactly two keys:
- "correctedText": the corrected/translated text in Markdown.
- "explanation": a short paragraph (2-4 sentences) in the SAME language as the input text, summarizing the main corrections you made. Be specific about what you changed and why. If no corrections were needed, say so.

Example:
{"correctedText": "The corrected text here...", "explanation": "Summary of corrections..."}

Return ONLY the JSON object. No markdown fences, no extra text before or after."""


def tone_instruction(tone_preset: Optional[str]) -> str:
    """Instruction for a tone preset, falling back to the neutral professional tone."""
    return TONE_INSTRUCTIONS.get(tone_preset or "", TONE_INSTRUCTIONS[DEFAULT_TONE])


def rewrite_instruction(rewrite_strength: Optional[str]) -> str:
    """Instruction for a rewrite level, falling back to minimal corrections."""
    return REWRITE_INSTRUCTIONS.get(rewrite_strength or "", REWRITE_INSTRUCTIONS[DEFAULT_REWRITE])


def _is_translation(req: Union[ProcessRequest, ExplainRequest]) -> bool:
    return req.mode == "translate_proofread"


def _translate_marker(req: Union[ProcessRequest, ExplainRequest]) -> Optional[str]:
    if _is_translation(req) and req.target_lang:
        return f"[Translate to {req.target_lang.upper()}]"
    return None


def _email_note(signature: str) -> str:
    closings = []
    for language, closing in EMAIL_CLOSINGS.items():
        if signature:
            closings.append(
                f'   - {language}: on a new line "{closing}" then on the next line "{signature}"'
            )
        else:
            closings.append(f'   - {language}: on a new line "{closing}"')
    closing_lines = "\n".join(closings)
    closing_rule = "a closing formula + signature" if signature else "a closing formula"

    return f"""
## Email formatting (HIGHEST PRIORITY, overrides other rules)
This text is an email. You MUST ensure the output contains:
1. The VERY FIRST LINE must be a suggested email subject line, prefixed with "Subject: ". Infer it from the email content. Keep it short and professional.
2. Then a blank line, then the email body.
3. The body MUST start with a greeting (e.g. "Bonjour," / "Hello," / "Guten Tag,"). Add one if missing.
4. The body MUST end with {closing_rule}. Add it if missing. Use exactly:
{closing_lines}
5. If the text already has a greeting or closing, keep it (fix if needed) but do NOT duplicate.
6. Adapt greeting formality to the tone preset.
Adding salutations and a subject line is NOT "inventing content": it is required email formatting."""


# ============================================================================
# PROCESS CALL (corrected text)
# ============================================================================

def build_process_system_prompt(req: ProcessRequest, signature: str = "") -> str:
    """
    Build the system prompt for the corrected-text call.

    Args:
        req: The process request.
        signature: Name written under the closing formula in email mode.

    Returns:
        System prompt asking for {"correctedText", "explanation"} JSON.
    """
    is_translation = _is_translation(req)

    role_desc = (
        "You are an expert translator, proofreader, and editor."
        if is_translation
        else "You are an expert proofreader and editor."
    )
    task = "Translate, proofread, and edit" if is_translation else "Proofread and edit"

    structure_note = (
        PRESERVE_STRUCTURE_NOTE
        if req.rewrite_strength in ("none", "light")
        else ADJUST_STRUCTURE_NOTE
    )

    translation_note = ""
    if is_translation:
        target = (req.target_lang or "").upper()
        translation_note = (
            f"\nTranslate the text to {target}. The translation must sound natural in the "
            "target language, not literal. Adapt idioms and expressions."
        )

    custom_note = ""
    if req.custom_instructions and req.custom_instructions.strip():
        custom_note = (
            "\n## Custom instructions (from the user, MUST be followed)\n"
            f"{req.custom_instructions.strip()}"
        )

    email_note = _email_note(signature) if req.email_mode else ""

    return f"""{role_desc}

## Your task
{task} the user's text according to the instructions below.
{email_note}

## Tone
{tone_instruction(req.tone_preset)}

## Rewrite level
{rewrite_instruction(req.rewrite_strength)}

## Structure
{structure_note}
{translation_note}
{custom_note}

{EDITORIAL_RULES}

{PROCESS_OUTPUT_FORMAT}"""


def build_process_user_prompt(req: ProcessRequest) -> str:
    """User message: optional translation marker, blank line, then the text."""
    parts: List[str] = []
    marker = _translate_marker(req)
    if marker:
        parts.append(marker)
    parts.append("")
    parts.append(req.input_text)
    return "\n".join(parts)


# ============================================================================
# EXPLAIN CALL (changes + learning points)
# ============================================================================

def build_explain_system_prompt(
    req: ExplainRequest,
    max_changes: int = MAX_CHANGES,
    max_learning: int = MAX_LEARNING_ITEMS,
) -> str:
    """
    Build the system prompt for the structured-explanations call.

    The model sees only the original text, so it has to identify the
    corrections itself at the requested rewrite level.
    """
    is_translation = _is_translation(req)
    categories = ", ".join(f'"{c}"' for c in CHANGE_CATEGORIES)

    if is_translation:
        target = (req.target_lang or "").upper()
        task = (
            f"The user's text is being translated to {target} and proofread. Identify the "
            "corrections and translation choices a careful editor would make, and explain them."
        )
    else:
        task = (
            "The user's text is being proofread and edited. Identify the corrections a careful "
            "editor would make, and explain them."
        )

    return f"""You are an expert writing teacher and editor.

## Your task
{task}

## Rewrite level applied by the editor
{rewrite_instruction(req.rewrite_strength)}
Only report changes consistent with this level.

## What to return
1. "changes": up to {max_changes} concrete edits, most important first. Each item:
   - "id": short unique id ("c1", "c2", ...)
   - "category": one of {categories}
   - "before": the exact original fragment
   - "after": the corrected fragment
   - "explanation": one or two sentences explaining the edit
   - "rule": optional short name of the grammar or style rule
   - "severity": "important" for real errors, "info" for stylistic improvements
2. "learning": up to {max_learning} recurring lessons the writer should remember. Each item:
   - "id": short unique id ("l1", "l2", ...)
   - "title": short title of the lesson
   - "explanation": the rule explained simply
   - "exampleBefore": optional wrong example taken from the text
   - "exampleAfter": optional corrected example
   - "category": one of the categories above

## Rules
- Write explanations and titles in the SAME language as the input text.
- Quote fragments exactly as they appear; do not invent errors.
- If the text needs no correction, return empty lists.

## Output format
Return ONLY a JSON object with exactly two keys, "changes" and "learning".

Example:
{{"changes": [{{"id": "c1", "category": "spelling", "before": "recieve", "after": "receive", "explanation": "...", "severity": "important"}}], "learning": [{{"id": "l1", "title": "...", "explanation": "...", "category": "spelling"}}]}}

Return ONLY the JSON object. No markdown fences, no extra text before or after."""


def build_explain_user_prompt(req: ExplainRequest) -> str:
    """User message for the explain call; same layout as the process call."""
    parts: List[str] = []
    marker = _translate_marker(req)
    if marker:
        parts.append(marker)
    parts.append("")
    parts.append(req.input_text)
    return "\n".join(parts)


def build_messages(system_prompt: str, user_prompt: str) -> List[dict]:
    """Chat messages in OpenAI format."""
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]
