"""
terminal.py

Render an aggregated flame graph tree as a collapsible Rich tree in your
terminal, with human-friendly units.
"""

from rich.markup import escape
from rich.tree import Tree

from ..flamegraph import FlameGraphNode


def format_time(us: int) -> str:
    """Convert microseconds to a human-friendly string."""
    if us >= 1_000_000:
        return f"{us / 1_000_000:.2f}s"
    elif us >= 1_000:
        return f"{us / 1_000:.2f}ms"
    else:
        return f"{us}μs"


def format_value(value, unit: str) -> str:
    if unit == "microseconds":
        return format_time(value)
    if unit == "nanoseconds":
        return format_time(value // 1_000)
    return f"{value} {unit}"


def render(node: FlameGraphNode, tree: Tree, total: int, unit: str):
    pending = [(node, tree)]
    while pending:
        current, branch = pending.pop()
        # Sort children by descending value
        for child in sorted(current.children.values(), key=lambda c: (-c.value, c.name)):
            pct = child.value / total * 100 if total else 0.0
            human = format_value(child.value, unit)
            label = f"[bold]{escape(child.name)}[/] • {human} ({pct:.1f}%)"
            pending.append((child, branch.add(label)))


def build_rich_tree(root: FlameGraphNode, unit: str) -> Tree:
    human_total = format_value(root.value, unit)
    tree = Tree(f"[b]{escape(root.name)}[/] • {human_total} (100%)")
    render(root, tree, root.value, unit)
    return tree
