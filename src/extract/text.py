"""Rich-text resolution and formatting-code removal for book pages and sign lines.

Book pages and sign lines are stored either as plain text or as a JSON text
component such as ``{"text":"Hello"}`` or ``{"extra":["a",{"text":"b"}],"text":""}``.
Books additionally have their ``§`` formatting codes stripped; signs do not.
"""

import json

from common.constants import FORMATTING_CODES
from common.logger import get_logger

logger = get_logger(__name__)

# Raw sign lines that mean "nothing written here"
EMPTY_SIGN_LINES = frozenset({"", '""', "null", "{}", '{"":""}'})


def strip_formatting(text: str) -> str:
    """Remove every ``§`` color/style code from ``text``."""
    if not text or "§" not in text:
        return text or ""
    for code in FORMATTING_CODES:
        text = text.replace(code, "")
    return text


def _component_text(component) -> str | None:
    """Text of one ``extra`` element, or None if it has no usable text."""
    if isinstance(component, str):
        return component
    if isinstance(component, dict):
        if "extra" in component:
            return _extra_text(component["extra"])
        text = component.get("text")
        if isinstance(text, (str, int, float)) and not isinstance(text, bool):
            return str(text)
    return None


def _extra_text(extra) -> str:
    if isinstance(extra, list):
        return "".join(t for t in map(_component_text, extra) if t is not None)
    return _component_text(extra) or ""


def resolve_rich_text(raw: str) -> str:
    """Resolve a JSON text component to its plain text.

    Text that does not start with ``{``, does not parse, or has neither an
    ``extra`` nor a ``text`` field is returned verbatim.
    """
    if not raw or not raw.startswith("{"):
        return raw or ""
    try:
        component = json.loads(raw)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.debug(f"Text is not valid JSON, using it verbatim: {e}")
        return raw

    if not isinstance(component, dict):
        return raw
    if "extra" in component:
        return _extra_text(component["extra"])
    if "text" in component:
        text = component["text"]
        return text if isinstance(text, str) else str(text)
    return raw


def page_text(raw: str) -> str:
    """Displayable text of a book page: rich text resolved, formatting removed."""
    return strip_formatting(resolve_rich_text(raw))


def sign_line_text(raw: str) -> str:
    """Displayable text of one sign line.

    Placeholder values (``""``, ``null``, ``{}``, ``{"":""}`` and a component
    whose only field is an empty ``text``) resolve to an empty string.
    Formatting codes are kept.
    """
    if raw in EMPTY_SIGN_LINES:
        return ""
    return resolve_rich_text(raw)
