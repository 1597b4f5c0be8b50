# pyFiberNet Module - ACS Parameter Tree
# -*- coding: utf-8 -*-
"""
 Traversal of the TR-069 parameter tree returned by the ACS (GenieACS NBI)

 The tree is schema-less: its shape depends on the device firmware. Leaves
 come in one of two encodings:

    [value, timestamp, type]                             # compact array leaf
    {"_value": v, "_timestamp": t, "_type": "xsd:..."}   # NBI projection leaf

 resolve() is the only place that looks at the wire shape. It returns one of
 Leaf, Node or MISSING and never raises.

 Functions
    resolve(tree, path)         # Return Leaf, Node or MISSING for a dotted path
    extract(tree, path)         # Return the leaf value (or mapping) or None
    iter_children(tree, path)   # Return [(index, mapping)] children of a node
    parse_timestamp(value)      # Convert an epoch/ISO timestamp to UTC datetime
"""
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, List, NamedTuple, Optional, Tuple, Union

from dateutil import parser as dateparser

log = logging.getLogger(__name__)


class _Missing:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "MISSING"


MISSING = _Missing()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Convert a leaf timestamp into an aware UTC datetime.

    Accepts epoch seconds, epoch milliseconds or an ISO 8601 string. Returns
    None for anything else.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            # GenieACS reports epoch milliseconds
            if value > 1e11:
                value = value / 1000.0
            return datetime.fromtimestamp(value, tz=timezone.utc)
        if isinstance(value, str) and value.strip():
            ts = dateparser.isoparse(value.strip())
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=timezone.utc)
            return ts.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError) as exc:
        log.debug(f"Unable to parse timestamp {value!r}: {exc}")
    return None


class Leaf(NamedTuple):
    value: Any
    timestamp: Any = None
    type_tag: Optional[str] = None

    def observed_at(self) -> Optional[datetime]:
        return parse_timestamp(self.timestamp)


class Node(NamedTuple):
    children: Mapping

    def entries(self) -> List[Tuple[str, Mapping]]:
        """Indexed child objects, skipping ACS metadata keys (_object, _writable, ...)"""
        result = []
        for key, child in self.children.items():
            if str(key).startswith('_'):
                continue
            if isinstance(child, Mapping):
                result.append((str(key), child))
        return result


Term = Union[Leaf, Node, _Missing]


def _as_term(value: Any) -> Term:
    if isinstance(value, (list, tuple)) and len(value) == 3:
        return Leaf(value[0], value[1], value[2])
    if isinstance(value, Mapping):
        if '_value' in value:
            return Leaf(value.get('_value'), value.get('_timestamp'), value.get('_type'))
        return Node(value)
    return Leaf(value)


def resolve(tree: Any, path: Any) -> Term:
    """
    Walk tree by dotted path.

    Returns MISSING as soon as a segment cannot be followed. Missing
    telemetry is normal (firmware dependent) and is never an error.
    """
    if isinstance(tree, Node):
        tree = tree.children
    if not isinstance(path, str) or not isinstance(tree, Mapping):
        return MISSING
    current = tree
    for segment in path.split('.'):
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        else:
            return MISSING
    return _as_term(current)


def extract(tree: Any, path: Any) -> Any:
    """
    Lookup a parameter value by dotted path or return None if not found.
        tree - nested parameter mapping (device document)
        path - dotted path, e.g. 'Device.DeviceInfo.UpTime'
    """
    term = resolve(tree, path)
    if term is MISSING:
        return None
    if isinstance(term, Leaf):
        return term.value
    return term.children


def iter_children(tree: Any, path: Any) -> List[Tuple[str, Mapping]]:
    term = resolve(tree, path)
    if isinstance(term, Node):
        return term.entries()
    return []
