"""
Dotted-path access into nested request data.

Paths use ``.`` to step into mappings and numeric segments to step into
lists, e.g. ``"user.addresses.0.city"``. A ``*`` segment in a rule key is a
wildcard that expands to every index (or key) present in the data.
"""

from typing import Any, Iterator, List, Mapping, MutableMapping


class _Missing:
    """Sentinel type for a path that does not exist in the data."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def get_value(data: Any, path: str) -> Any:
    """
    Resolve a dotted path against nested data.

    Args:
        data: Mapping (or list) to read from
        path: Dotted field path

    Returns:
        The value at the path, or ``MISSING`` if any segment is absent.
        A present ``None``/``""``/``0`` is returned as-is.
    """
    current = data
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, (list, tuple)):
            if not segment.isdigit():
                return MISSING
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def set_value(data: Any, path: str, value: Any) -> None:
    """Write ``value`` at an existing dotted path. Intermediate nodes must exist."""
    segments = path.split(".")
    parent = data
    for segment in segments[:-1]:
        parent = parent[int(segment)] if isinstance(parent, list) else parent[segment]
    last = segments[-1]
    if isinstance(parent, list):
        parent[int(last)] = value
    else:
        parent[last] = value


def delete_value(data: Any, path: str) -> None:
    """Remove the value at a dotted path. Absent paths and immutable parents are left alone."""
    head, _, last = path.rpartition(".")
    parent = get_value(data, head) if head else data
    if isinstance(parent, MutableMapping):
        parent.pop(last, None)
    elif isinstance(parent, list) and last.isdigit() and int(last) < len(parent):
        del parent[int(last)]


def expand_path(data: Any, pattern: str) -> List[str]:
    """
    Expand ``*`` segments of a field pattern against the data.

    Patterns without wildcards are returned unchanged (even when absent from
    the data, so that ``required`` can fail on them). A wildcard over a
    missing or scalar node expands to nothing.
    """
    if "*" not in pattern.split("."):
        return [pattern]
    return list(_expand(data, pattern.split("."), []))


def _expand(node: Any, segments: List[str], prefix: List[str]) -> Iterator[str]:
    if not segments:
        yield ".".join(prefix)
        return
    head, rest = segments[0], segments[1:]
    if head != "*":
        if isinstance(node, Mapping):
            child = node.get(head, MISSING)
        elif isinstance(node, (list, tuple)) and head.isdigit() and int(head) < len(node):
            child = node[int(head)]
        else:
            child = MISSING
        yield from _expand(child, rest, prefix + [head])
        return
    if isinstance(node, Mapping):
        keys = [str(k) for k in node.keys()]
        children = list(node.values())
    elif isinstance(node, (list, tuple)):
        keys = [str(i) for i in range(len(node))]
        children = list(node)
    else:
        return
    for key, child in zip(keys, children):
        yield from _expand(child, rest, prefix + [key])
