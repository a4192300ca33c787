"""
Built-in sanitizers.

A sanitizer has the signature ``sanitizer(value, args) -> new_value`` and
must not mutate ``value``. Sanitizers that only make sense for strings return
non-string values unchanged.
"""

import html
import re
import unicodedata
from typing import Any, Tuple

TAG_PATTERN = re.compile(r"<[^>]*>")
LINK_PATTERN = re.compile(r"<a\b[^>]*>(.*?)</a>", re.IGNORECASE | re.DOTALL)
WHITESPACE_PATTERN = re.compile(r"\s+")
SLUG_STRIP_PATTERN = re.compile(r"[^\w\s-]")
SLUG_SEPARATOR_PATTERN = re.compile(r"[-\s_]+")

# Providers whose mailboxes ignore dots in the local part.
DOT_INSENSITIVE_DOMAINS = ("gmail.com", "googlemail.com")


def trim(value: Any, args: Tuple[Any, ...]) -> Any:
    return value.strip() if isinstance(value, str) else value


def lower_case(value, args):
    return value.lower() if isinstance(value, str) else value


def upper_case(value, args):
    return value.upper() if isinstance(value, str) else value


def capitalize(value, args):
    return value.capitalize() if isinstance(value, str) else value


def collapse_whitespace(value, args):
    if not isinstance(value, str):
        return value
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def escape(value, args):
    """HTML-escape ``& < > " '``."""
    return html.escape(value, quote=True) if isinstance(value, str) else value


def strip_tags(value, args):
    return TAG_PATTERN.sub("", value) if isinstance(value, str) else value


def strip_links(value, args):
    """Replace ``<a>`` elements with their inner text."""
    return LINK_PATTERN.sub(r"\1", value) if isinstance(value, str) else value


def normalize_email(value, args):
    """
    Lower-case an email address and canonicalise provider quirks.

    For Gmail addresses, dots and ``+tag`` suffixes in the local part are
    dropped and ``googlemail.com`` becomes ``gmail.com``. Pass ``keep_dots``
    or ``keep_tags`` as arguments to disable either step.
    """
    if not isinstance(value, str) or "@" not in value:
        return value
    local, _, domain = value.strip().rpartition("@")
    local, domain = local.lower(), domain.lower()
    if domain in DOT_INSENSITIVE_DOMAINS:
        if "keep_tags" not in args:
            local = local.split("+", 1)[0]
        if "keep_dots" not in args:
            local = local.replace(".", "")
        domain = "gmail.com"
    return f"{local}@{domain}"


def slug(value, args):
    if not isinstance(value, str):
        return value
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    normalized = SLUG_STRIP_PATTERN.sub("", normalized).strip().lower()
    return SLUG_SEPARATOR_PATTERN.sub("-", normalized).strip("-")


def to_int(value, args):
    """Coerce to int; ``args[0]`` may give the base for strings. Unparseable input -> None."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        base = int(args[0]) if args else 10
        try:
            return int(value.strip(), base)
        except ValueError:
            return None
    return None


def to_float(value, args):
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def to_boolean(value, args):
    """``"false"``, ``"0"``, ``""`` and falsy values become False."""
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false")
    return bool(value)


def to_null(value, args):
    """Empty strings become None."""
    if isinstance(value, str) and value == "":
        return None
    return value


BUILTIN_SANITIZERS = {
    "trim": trim,
    "lower_case": lower_case,
    "upper_case": upper_case,
    "capitalize": capitalize,
    "collapse_whitespace": collapse_whitespace,
    "escape": escape,
    "strip_tags": strip_tags,
    "strip_links": strip_links,
    "normalize_email": normalize_email,
    "slug": slug,
    "to_int": to_int,
    "to_float": to_float,
    "to_boolean": to_boolean,
    "to_null": to_null,
}
