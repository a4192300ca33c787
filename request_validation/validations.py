"""
Built-in validation rules.

Every rule has the signature ``rule(data, field, message, args, get)``:

- ``data``: the full data object being validated
- ``field``: dotted path of the field under test
- ``message``: the already-resolved failure message
- ``args``: tuple of raw arguments from the rule spec
- ``get``: ``get(data, path)`` value getter; returns ``MISSING`` when absent

A rule passes by returning and fails by raising ``ValidationFailure``.
Apart from the ``required*`` family and ``accepted``, rules pass when the
value is absent or ``None`` so that optional fields are only checked when
supplied.
"""

import ipaddress
import json
import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Tuple
from urllib.parse import urlparse

from .data_path import MISSING
from .errors import ValidationFailure

EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)
ALPHA_PATTERN = re.compile(r"^[A-Za-z]+$")
ALPHA_NUMERIC_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
INTEGER_PATTERN = re.compile(r"^[-+]?\d+$")

TRUTHY_STRINGS = ("true", "1")
FALSY_STRINGS = ("false", "0")
ACCEPTED_VALUES = (True, 1, "1", "true", "yes", "on")


def _skippable(value: Any) -> bool:
    return value is MISSING or value is None


def _empty(value: Any) -> bool:
    if value is MISSING or value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _to_date(value: Any) -> Optional[date]:
    """Naive datetime for ``value``; aware values are converted to UTC first."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is not None:
        try:
            moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            return None
    return moment


def _length(value: Any) -> Optional[int]:
    if isinstance(value, (str, list, tuple, dict)):
        return len(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return len(str(value))
    return None


def _require_args(args: Tuple[Any, ...], count: int, rule_name: str) -> None:
    if len(args) < count:
        raise ValueError(f"{rule_name} rule needs {count} argument(s), got {len(args)}")


# Presence rules


def required(data, field, message, args, get):
    if _empty(get(data, field)):
        raise ValidationFailure(message)


def required_if(data, field, message, args, get):
    """Required when the field named in ``args[0]`` is present."""
    _require_args(args, 1, "required_if")
    if not _empty(get(data, args[0])):
        required(data, field, message, args, get)


def required_when(data, field, message, args, get):
    """Required when ``args[0]`` equals ``args[1]``."""
    _require_args(args, 2, "required_when")
    other = get(data, args[0])
    if not _skippable(other) and str(other) == str(args[1]):
        required(data, field, message, args, get)


def required_with_any(data, field, message, args, get):
    if any(not _empty(get(data, other)) for other in args):
        required(data, field, message, args, get)


def required_with_all(data, field, message, args, get):
    if args and all(not _empty(get(data, other)) for other in args):
        required(data, field, message, args, get)


def required_without_any(data, field, message, args, get):
    if any(_empty(get(data, other)) for other in args):
        required(data, field, message, args, get)


def required_without_all(data, field, message, args, get):
    if args and all(_empty(get(data, other)) for other in args):
        required(data, field, message, args, get)


def accepted(data, field, message, args, get):
    value = get(data, field)
    if isinstance(value, str):
        value = value.lower()
    if value not in ACCEPTED_VALUES:
        raise ValidationFailure(message)


# Type and format rules


def email(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
        raise ValidationFailure(message)


def alpha(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    if not isinstance(value, str) or not ALPHA_PATTERN.match(value):
        raise ValidationFailure(message)


def alpha_numeric(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    if not ALPHA_NUMERIC_PATTERN.match(str(value)) or isinstance(value, bool):
        raise ValidationFailure(message)


def string(data, field, message, args, get):
    value = get(data, field)
    if not _skippable(value) and not isinstance(value, str):
        raise ValidationFailure(message)


def number(data, field, message, args, get):
    value = get(data, field)
    if not _skippable(value) and _to_number(value) is None:
        raise ValidationFailure(message)


def integer(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    if isinstance(value, bool):
        raise ValidationFailure(message)
    if isinstance(value, int):
        return
    if isinstance(value, float) and value.is_integer():
        return
    if isinstance(value, str) and INTEGER_PATTERN.match(value):
        return
    raise ValidationFailure(message)


def boolean(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    if isinstance(value, bool) or value in (0, 1):
        return
    if isinstance(value, str) and value.lower() in TRUTHY_STRINGS + FALSY_STRINGS:
        return
    raise ValidationFailure(message)


def array(data, field, message, args, get):
    value = get(data, field)
    if not _skippable(value) and not isinstance(value, (list, tuple)):
        raise ValidationFailure(message)


def object_(data, field, message, args, get):
    value = get(data, field)
    if not _skippable(value) and not isinstance(value, dict):
        raise ValidationFailure(message)


def json_(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    if not isinstance(value, str):
        raise ValidationFailure(message)
    try:
        json.loads(value)
    except (ValueError, RecursionError):
        raise ValidationFailure(message) from None


def url(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    if not isinstance(value, str) or any(c.isspace() for c in value):
        raise ValidationFailure(message)
    try:
        parsed = urlparse(value)
    except ValueError:
        raise ValidationFailure(message) from None
    if parsed.scheme not in ("http", "https", "ftp") or not parsed.netloc:
        raise ValidationFailure(message)


def ip(data, field, message, args, get):
    value = get(data, field)
    if _skippable(value):
        return
    try:
        ipaddress.ip_address(str(value))
    except ValueError:
        raise ValidationFailure(message) from None


def date_(data, field, message, args, get):
    value = get(data, field)
    if not _skippable(value) and _to_date(value) is None:
        raise ValidationFailure(message)


def date_format(data, field, message, args, get):
    """Value must parse with the ``strptime`` format in ``args[0]``."""
    _require_args(args, 1, "date_format")
    value = get(data, field)
    if _skippable(value):
        return
    try:
        datetime.strptime(str(value), args[0])
    except ValueError:
        raise ValidationFailure(message) from None


def before(data, field, message, args, get):
    _require_args(args, 1, "before")
    value = get(data, field)
    if _skippable(value):
        return
    value_date, limit = _to_date(value), _to_date(args[0])
    if limit is None:
        raise ValueError(f"before rule has an invalid date argument: {args[0]!r}")
    if value_date is None or not value_date < limit:
        raise ValidationFailure(message)


def after(data, field, message, args, get):
    _require_args(args, 1, "after")
    value = get(data, field)
    if _skippable(value):
        return
    value_date, limit = _to_date(value), _to_date(args[0])
    if limit is None:
        raise ValueError(f"after rule has an invalid date argument: {args[0]!r}")
    if value_date is None or not value_date > limit:
        raise ValidationFailure(message)


# Size rules


def min_(data, field, message, args, get):
    """Minimum length of a string, list or number's digits."""
    _require_args(args, 1, "min")
    value = get(data, field)
    if _skippable(value):
        return
    length = _length(value)
    if length is None or length < int(args[0]):
        raise ValidationFailure(message)


def max_(data, field, message, args, get):
    """Maximum length of a string, list or number's digits."""
    _require_args(args, 1, "max")
    value = get(data, field)
    if _skippable(value):
        return
    length = _length(value)
    if length is None or length > int(args[0]):
        raise ValidationFailure(message)


def range_(data, field, message, args, get):
    """Numeric value strictly between ``args[0]`` and ``args[1]``."""
    _require_args(args, 2, "range")
    value = get(data, field)
    if _skippable(value):
        return
    numeric = _to_number(value)
    if numeric is None or not float(args[0]) < numeric < float(args[1]):
        raise ValidationFailure(message)


def above(data, field, message, args, get):
    _require_args(args, 1, "above")
    value = get(data, field)
    if _skippable(value):
        return
    numeric = _to_number(value)
    if numeric is None or not numeric > float(args[0]):
        raise ValidationFailure(message)


def under(data, field, message, args, get):
    _require_args(args, 1, "under")
    value = get(data, field)
    if _skippable(value):
        return
    numeric = _to_number(value)
    if numeric is None or not numeric < float(args[0]):
        raise ValidationFailure(message)


# Comparison rules


def in_(data, field, message, args, get):
    value = get(data, field)
    if not _skippable(value) and str(value) not in [str(a) for a in args]:
        raise ValidationFailure(message)


def not_in(data, field, message, args, get):
    value = get(data, field)
    if not _skippable(value) and str(value) in [str(a) for a in args]:
        raise ValidationFailure(message)


def equals(data, field, message, args, get):
    _require_args(args, 1, "equals")
    value = get(data, field)
    if not _skippable(value) and str(value) != str(args[0]):
        raise ValidationFailure(message)


def not_equals(data, field, message, args, get):
    _require_args(args, 1, "not_equals")
    value = get(data, field)
    if not _skippable(value) and str(value) == str(args[0]):
        raise ValidationFailure(message)


def same(data, field, message, args, get):
    """Value must equal the value of the field named in ``args[0]``."""
    _require_args(args, 1, "same")
    value = get(data, field)
    if not _skippable(value) and value != get(data, args[0]):
        raise ValidationFailure(message)


def different(data, field, message, args, get):
    _require_args(args, 1, "different")
    value = get(data, field)
    if not _skippable(value) and value == get(data, args[0]):
        raise ValidationFailure(message)


def confirmed(data, field, message, args, get):
    """Value must match ``<field>_confirmation``."""
    value = get(data, field)
    if not _skippable(value) and value != get(data, f"{field}_confirmation"):
        raise ValidationFailure(message)


def regex(data, field, message, args, get):
    """``args[0]`` is the pattern, optional ``args[1]`` holds flags (``i``, ``m``, ``s``)."""
    _require_args(args, 1, "regex")
    value = get(data, field)
    if _skippable(value):
        return
    flags = 0
    for flag in (args[1] if len(args) > 1 else ""):
        flags |= {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}.get(flag, 0)
    pattern = args[0] if isinstance(args[0], re.Pattern) else re.compile(args[0], flags)
    if not pattern.search(str(value)):
        raise ValidationFailure(message)


def starts_with(data, field, message, args, get):
    _require_args(args, 1, "starts_with")
    value = get(data, field)
    if not _skippable(value) and not str(value).startswith(str(args[0])):
        raise ValidationFailure(message)


def ends_with(data, field, message, args, get):
    _require_args(args, 1, "ends_with")
    value = get(data, field)
    if not _skippable(value) and not str(value).endswith(str(args[0])):
        raise ValidationFailure(message)


def includes(data, field, message, args, get):
    _require_args(args, 1, "includes")
    value = get(data, field)
    if _skippable(value):
        return
    if isinstance(value, (list, tuple)):
        found = args[0] in value or str(args[0]) in [str(v) for v in value]
    else:
        found = str(args[0]) in str(value)
    if not found:
        raise ValidationFailure(message)


BUILTIN_VALIDATIONS = {
    "required": required,
    "required_if": required_if,
    "required_when": required_when,
    "required_with_any": required_with_any,
    "required_with_all": required_with_all,
    "required_without_any": required_without_any,
    "required_without_all": required_without_all,
    "accepted": accepted,
    "email": email,
    "alpha": alpha,
    "alpha_numeric": alpha_numeric,
    "string": string,
    "number": number,
    "integer": integer,
    "boolean": boolean,
    "array": array,
    "object": object_,
    "json": json_,
    "url": url,
    "ip": ip,
    "date": date_,
    "date_format": date_format,
    "before": before,
    "after": after,
    "min": min_,
    "max": max_,
    "range": range_,
    "above": above,
    "under": under,
    "in": in_,
    "not_in": not_in,
    "equals": equals,
    "not_equals": not_equals,
    "same": same,
    "different": different,
    "confirmed": confirmed,
    "regex": regex,
    "starts_with": starts_with,
    "ends_with": ends_with,
    "includes": includes,
}
