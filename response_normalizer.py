"""Turn the free-text Gemini reply into a well-shaped analysis dict.

The model is asked for pure JSON but may still wrap it in a ```json fence, add
commentary around it, use typographic quotes or leave a trailing comma. Each
repair below is a separate step so it can be checked on its own; the order is
fixed and every step only runs when the previous ones were not enough.
"""
import json
import logging
import re
from typing import Any, Dict, List

from errors import ParseError

log = logging.getLogger(__name__)

FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

SMART_QUOTES = str.maketrans({
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    "\u201f": '"',
    "\u2033": '"',
    "\u2018": "'",
    "\u2019": "'",
    "\u201a": "'",
    "\u201b": "'",
    "\u2032": "'",
})

TEXT_FIELDS = ("summary", "encouragement")
LIST_FIELDS = ("weaknesses", "suggestions")

NOT_JSON = object()


# ---------- Pipeline steps ----------
def try_direct_parse(text: str) -> Any:
    """Return the parsed value, or NOT_JSON when the text is not strict JSON.

    Nesting deeper than the decoder can follow also counts as not JSON.
    """
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return NOT_JSON


def extract_fenced_block(text: str) -> str:
    match = FENCE_RE.search(text)
    return match.group(1) if match else text


def normalize_quotes(text: str) -> str:
    return text.translate(SMART_QUOTES)


def slice_json_object(text: str) -> str:
    # first "{" to last "}"; braces in surrounding chatter can still confuse this
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ParseError("no JSON object found")
    return text[start:end + 1]


def strip_trailing_commas(text: str) -> str:
    return TRAILING_COMMA_RE.sub(r"\1", text)


# ---------- Shape coercion ----------
def _as_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, str):
            items.append(item)
        else:
            items.append(json.dumps(item, ensure_ascii=False, separators=(",", ":")))
    return items


def coerce_analysis(value: Any) -> Dict[str, Any]:
    """Force any parsed value into the four-field analysis shape.

    Unknown keys are kept as they are. Applying this twice gives the same dict.
    """
    analysis = dict(value) if isinstance(value, dict) else {}
    for field in TEXT_FIELDS:
        if not isinstance(analysis.get(field), str):
            analysis[field] = ""
    for field in LIST_FIELDS:
        analysis[field] = _as_text_list(analysis.get(field))
    return analysis


# ---------- Entry point ----------
def parse_model_json(raw_text: str) -> Any:
    text = (raw_text or "").strip()

    parsed = try_direct_parse(text)
    if parsed is not NOT_JSON:
        return parsed

    working = normalize_quotes(extract_fenced_block(text))
    try:
        candidate = strip_trailing_commas(slice_json_object(working))
        return json.loads(candidate)
    except ParseError:
        log.error("No JSON object in model output. Raw model output: %r", raw_text)
        raise
    except (ValueError, RecursionError) as e:
        log.error("Parse failed (%s). Raw model output: %r", e, raw_text)
        raise ParseError(str(e)) from e


def normalize_response(raw_text: str) -> Dict[str, Any]:
    return coerce_analysis(parse_model_json(raw_text))
