"""
flamegraph.py

Fold weighted call stacks into an aggregated call tree and serialize it
for the browser flame graph.

Frames are given root first: index 0 is the frame nearest the program
entry, the last frame is where the sample was captured.
"""

import json

from jinja2.utils import htmlsafe_json_dumps

from .errors import SerializationError


ROOT_NAME = "root"


class FlameGraphNode:
    __slots__ = ("name", "value", "children")

    def __init__(self, name: str, value: int = 0):
        self.name = name
        self.value = value
        self.children = {}

    def __repr__(self):
        return f"FlameGraphNode({self.name!r}, {self.value!r}, children={len(self.children)})"

    def add(self, frames, value: int) -> None:
        """Add `value` to this node and to every node along `frames`."""
        node = self
        node.value += value
        for name in frames:
            child = node.children.get(name)
            if child is None:
                child = node.children[name] = FlameGraphNode(name)
            node = child
            node.value += value


def build_tree(stacks) -> FlameGraphNode:
    """Aggregate (frames, value) pairs under a fresh root node."""
    root = FlameGraphNode(ROOT_NAME)
    for frames, value in stacks:
        root.add(frames, value)
    return root


def build_profile_tree(profile, index: int) -> FlameGraphNode:
    """Aggregate the samples of a profile using value series `index`."""
    return build_tree(
        (sample.frames(), sample.values[index]) for sample in profile.samples
    )


def serialize(node: FlameGraphNode) -> dict:
    """
    Convert a tree into nested ``{"name", "value", "children"}`` dicts.

    Children are sorted by name so the output is reproducible; the flame
    graph itself does not depend on the order.
    """
    out = {"name": node.name, "value": node.value, "children": []}
    pending = [(node, out)]
    while pending:
        current, current_out = pending.pop()
        for name in sorted(current.children):
            child = current.children[name]
            child_out = {"name": child.name, "value": child.value, "children": []}
            current_out["children"].append(child_out)
            pending.append((child, child_out))
    return out


def _encode_node(node: FlameGraphNode) -> str:
    name, value = node.name, node.value
    if not isinstance(name, str):
        raise SerializationError(f"function name {name!r} is not text")
    try:
        name.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise SerializationError(f"cannot encode function name {name!r}") from exc
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SerializationError(f"value {value!r} of {name!r} is not a number")
    try:
        encoded_value = json.dumps(value, allow_nan=False)
    except ValueError as exc:
        raise SerializationError(f"value {value!r} of {name!r} is not finite") from exc
    return '{"name": %s, "value": %s, "children": [' % (json.dumps(name), encoded_value)


def _dumps_tree(node: FlameGraphNode, **kwargs) -> str:
    # Emits the same layout as json.dumps(serialize(node)) without recursing.
    parts = []
    pending = [node]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        parts.append(_encode_node(item))
        pending.append("]}")
        names = sorted(item.children, reverse=True)
        for i, name in enumerate(names):
            pending.append(item.children[name])
            if i < len(names) - 1:
                pending.append(", ")
    return "".join(parts)


def to_json(node: FlameGraphNode):
    """
    Serialize a tree to JSON text that is safe to embed in a <script> tag.

    Raises SerializationError when a function name or value cannot be
    represented; nothing is returned in that case.
    """
    return htmlsafe_json_dumps(node, dumps=_dumps_tree)
