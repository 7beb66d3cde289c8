"""
The in-memory search request document and its path engine.

The request is kept as plain JSON-compatible `dict` / `list` / scalar values so
it can be handed to `json.dumps` without conversion. Every structural write goes
through [`QueryTree.get_mutable()`][crsearch.models.query.tree.QueryTree.get_mutable],
which walks a key tuple in one checked pass: a typo'd segment fails immediately
instead of silently creating structure.
"""

import copy
import json
from typing import Any, Dict, List, Sequence, Set, Tuple, Union

from ...exceptions import InvalidPathError

# --- Index fields consumed on the query side ---
PATH_FIELD = "__path"
"""Absolute node path, the only field projected by the top hits aggregation."""
PARENT_PATH_FIELD = "__parentPath"
"""Tokenized at indexing time into every ancestor path, so a term filter matches a subtree."""
TYPE_AND_SUPERTYPES_FIELD = "__typeAndSupertypes"
"""Node type name plus all of its supertypes, expanded at indexing time."""
WORKSPACE_FIELD = "__workspace"
HIDDEN_FIELD = "_hidden"
HIDDEN_BEFORE_FIELD = "_hiddenBeforeDateTime"
HIDDEN_AFTER_FIELD = "_hiddenAfterDateTime"

LIVE_WORKSPACE = "live"
DEFAULT_TOP_HITS_SIZE = 1

# --- Fixed locations inside the seeded document ---
FILTERED_AGGREGATION = "filtered"
TOP_HITS_AGGREGATION = "top_node_hits"

BOOL_FILTER_PATH: Tuple[str, ...] = ("aggs", FILTERED_AGGREGATION, "filter", "bool")
SUB_AGGREGATIONS_PATH: Tuple[str, ...] = ("aggs", FILTERED_AGGREGATION, "aggs")
TOP_HITS_PATH: Tuple[str, ...] = SUB_AGGREGATIONS_PATH + (TOP_HITS_AGGREGATION, "top_hits")

Node = Union[Dict[str, Any], List[Any], str, int, float, bool, None]
PathKey = Union[str, int]
PathLike = Union[str, Sequence[PathKey]]


def _as_key_tuple(path: PathLike) -> Tuple[PathKey, ...]:
    if isinstance(path, str):
        keys: Tuple[PathKey, ...] = tuple(path.split("."))
    else:
        keys = tuple(path)
    for key in keys:
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            raise InvalidPathError(
                _format_path(keys), repr(key), "path segments must be str or int"
            )
    if not keys or any(k == "" for k in keys):
        raise InvalidPathError(_format_path(keys), "", "empty path segment")
    return keys


def _format_path(keys: Sequence[PathKey]) -> str:
    return ".".join(str(k) for k in keys)


def _step(node: Node, key: PathKey, keys: Tuple[PathKey, ...]) -> Node:
    """Descends one level from `node`, which must be a mapping or a sequence."""
    path = _format_path(keys)
    if isinstance(node, dict):
        if key not in node:
            raise InvalidPathError(path, str(key), "no such key")
        return node[key]
    if isinstance(node, list):
        # Sequence elements are addressed by position; dotted strings carry it as digits
        if isinstance(key, str):
            if not key.isdigit():
                raise InvalidPathError(path, key, "expected a list index")
            key = int(key)
        if isinstance(key, bool) or not 0 <= key < len(node):
            raise InvalidPathError(path, str(key), "list index out of range")
        return node[key]
    raise InvalidPathError(
        path, str(key), f"parent is a '{type(node).__name__}', not a mapping or list"
    )


class QueryTree:
    """
    The search request, seeded with a fixed skeleton.

    The seed returns no records directly (`size: 0`); everything comes back
    through the `filtered` aggregation, whose boolean filter starts with three
    visibility exclusions in `must_not` and whose `top_node_hits` sub-aggregation
    projects only the node path of each hit.

    Example:
        ```python
        tree = QueryTree()
        tree.append_at_path("aggs.filtered.filter.bool.must", {"term": {"title": "foo"}})
        tree.set_at_path(("aggs", "filtered", "aggs", "top_node_hits", "top_hits", "size"), 10)
        body = tree.to_json()
        ```
    """

    def __init__(self):
        self._document: Dict[str, Any] = self.seed()

    @staticmethod
    def seed() -> Dict[str, Any]:
        """Returns a fresh copy of the initial request skeleton."""
        return {
            "size": 0,
            "aggs": {
                FILTERED_AGGREGATION: {
                    "filter": {
                        "bool": {
                            "must": [],
                            "should": [],
                            "must_not": [
                                # Filter out all hidden elements
                                {"term": {HIDDEN_FIELD: True}},
                                # now < hiddenBeforeDateTime: not yet visible
                                {"range": {HIDDEN_BEFORE_FIELD: {"gt": "now"}}},
                                # now > hiddenAfterDateTime: no longer visible
                                {"range": {HIDDEN_AFTER_FIELD: {"lt": "now"}}},
                            ],
                        }
                    },
                    "aggs": {
                        TOP_HITS_AGGREGATION: {
                            "top_hits": {
                                "sort": [],
                                "_source": {"include": [PATH_FIELD]},
                                "size": DEFAULT_TOP_HITS_SIZE,
                            }
                        }
                    },
                }
            },
        }

    @property
    def document(self) -> Dict[str, Any]:
        """The live request document. Mutating it bypasses the path checks."""
        return self._document

    def get_mutable(self, path: PathLike) -> Node:
        """
        Walks `path` and returns the live node found at its end.

        Args:
            path: A key tuple (e.g. `("aggs", "filtered")`) or a dotted string
                (e.g. `"aggs.filtered"`). Sequence elements are addressed by
                integer position.

        Raises:
            InvalidPathError: If a segment does not exist, or is reached
                through a node that is neither a mapping nor a list.
        """
        keys = _as_key_tuple(path)
        node: Node = self._document
        for key in keys:
            node = _step(node, key, keys)
        return node

    def append_at_path(self, path: PathLike, value: Node) -> None:
        """
        Appends `value` to the list found at `path`.

        The path is fully resolved before anything is written, so a failure
        leaves the document untouched.

        Raises:
            InvalidPathError: If the path cannot be resolved or does not end at a list.
        """
        target = self.get_mutable(path)
        if not isinstance(target, list):
            keys = _as_key_tuple(path)
            raise InvalidPathError(
                _format_path(keys),
                str(keys[-1]),
                f"terminal element is a '{type(target).__name__}', not a list",
            )
        target.append(value)

    def set_at_path(self, path: PathLike, value: Node) -> None:
        """
        Sets the terminal key of `path` to `value`, replacing any previous value.

        Sets keep the skeleton fixed:

        * lists and their elements are append-only and cannot be set;
        * containers of the seeded skeleton cannot be replaced;
        * an existing value can only be replaced by one of the same shape
          (mapping by mapping, scalar by scalar);
        * new keys may only be added under the sub-aggregations of the
          `filtered` bucket and under the `top_hits` options.

        Raises:
            InvalidPathError: If the parent cannot be resolved, or the write
                would break one of the rules above.
        """
        keys = _as_key_tuple(path)
        formatted = _format_path(keys)
        key = keys[-1]

        parent: Node = self._document
        for segment in keys[:-1]:
            parent = _step(parent, segment, keys)
            if isinstance(parent, list):
                raise InvalidPathError(formatted, str(segment), "lists are append-only")
        if not isinstance(parent, dict):
            raise InvalidPathError(
                formatted, str(key), f"parent is a '{type(parent).__name__}', not a mapping"
            )

        name = str(key)
        target = tuple(str(k) for k in keys)
        if name in parent:
            existing = parent[name]
            if isinstance(existing, list):
                raise InvalidPathError(formatted, name, "lists are append-only")
            if target in _SKELETON_CONTAINERS:
                raise InvalidPathError(formatted, name, "part of the fixed request skeleton")
            if isinstance(value, list) or isinstance(existing, dict) != isinstance(value, dict):
                raise InvalidPathError(
                    formatted,
                    name,
                    f"cannot replace a '{type(existing).__name__}' with a '{type(value).__name__}'",
                )
        elif target[:-1] not in _EXTENSIBLE_PARENTS:
            raise InvalidPathError(formatted, name, "no such key")

        parent[name] = value

    def to_dict(self) -> Dict[str, Any]:
        """Returns a deep copy of the request document."""
        return copy.deepcopy(self._document)

    def to_json(self) -> str:
        """Serializes the request document to its JSON wire format."""
        return json.dumps(self._document, separators=(",", ":"))


def _container_paths(node: Node, prefix: Tuple[str, ...] = ()) -> Set[Tuple[str, ...]]:
    paths: Set[Tuple[str, ...]] = set()
    if isinstance(node, dict):
        for key, child in node.items():
            if isinstance(child, (dict, list)):
                paths.add(prefix + (key,))
                paths |= _container_paths(child, prefix + (key,))
    return paths


_SKELETON_CONTAINERS = frozenset(_container_paths(QueryTree.seed()))
_EXTENSIBLE_PARENTS = frozenset({SUB_AGGREGATIONS_PATH, TOP_HITS_PATH})
