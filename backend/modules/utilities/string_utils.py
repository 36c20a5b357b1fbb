"""String helpers (``utilities.string-utils``)."""

import html
import re
import unicodedata

_TAG_RE = re.compile(r"<[^>]*>")
_WORD_SPLIT_RE = re.compile(r"[^A-Za-z0-9]+|(?<=[a-z0-9])(?=[A-Z])")


def _words(text: str) -> list[str]:
    return [w for w in _WORD_SPLIT_RE.split(str(text)) if w]


def capitalize(text: str) -> str:
    """Capitalize first letter of string."""
    text = str(text)
    return text[:1].upper() + text[1:]


def to_slug(text: str) -> str:
    """Convert string to URL-friendly slug."""
    normalized = unicodedata.normalize("NFKD", str(text)).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")


def to_camel_case(text: str) -> str:
    """Convert string to camelCase."""
    words = _words(text)
    if not words:
        return ""
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def to_pascal_case(text: str) -> str:
    """Convert string to PascalCase."""
    return "".join(w.capitalize() for w in _words(text))


def to_snake_case(text: str) -> str:
    """Convert string to snake_case."""
    return "_".join(w.lower() for w in _words(text))


def to_kebab_case(text: str) -> str:
    """Convert string to kebab-case."""
    return "-".join(w.lower() for w in _words(text))


def truncate(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate string to max length, suffix included."""
    text = str(text)
    max_length = int(max_length)
    if len(text) <= max_length:
        return text
    return text[: max(max_length - len(suffix), 0)] + suffix


def truncate_words(text: str, max_words: int, suffix: str = "...") -> str:
    """Truncate string to max words."""
    words = str(text).split()
    if len(words) <= int(max_words):
        return str(text)
    return " ".join(words[: int(max_words)]) + suffix


def strip_html(text: str) -> str:
    """Remove HTML tags from string."""
    return html.unescape(_TAG_RE.sub("", str(text))).strip()


def escape_html(text: str) -> str:
    """Escape HTML special characters."""
    return html.escape(str(text), quote=True)


MODULE = "string-utils"

FUNCTIONS = {
    "capitalize": {"func": capitalize, "parameter_names": ["str"]},
    "toSlug": {"func": to_slug, "parameter_names": ["text"]},
    "toCamelCase": {"func": to_camel_case, "parameter_names": ["str"]},
    "toPascalCase": {"func": to_pascal_case, "parameter_names": ["str"]},
    "toSnakeCase": {"func": to_snake_case, "parameter_names": ["str"]},
    "toKebabCase": {"func": to_kebab_case, "parameter_names": ["str"]},
    "truncate": {
        "func": truncate,
        "parameter_names": ["str", "maxLength", "suffix"],
        "required_parameters": ["str", "maxLength"],
    },
    "truncateWords": {
        "func": truncate_words,
        "parameter_names": ["str", "maxWords", "suffix"],
        "required_parameters": ["str", "maxWords"],
    },
    "stripHtml": {"func": strip_html, "parameter_names": ["str"]},
    "escapeHtml": {"func": escape_html, "parameter_names": ["str"]},
}
