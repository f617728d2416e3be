from __future__ import annotations

import heapq
from collections import deque
from collections.abc import Iterator

from reclaim.models.enums import NodeKind
from reclaim.models.scan import DiskNode


def finalize_sizes(root: DiskNode) -> None:
    """Bottom-up pass: sum children sizes into directory nodes and sort by size.

    Childless nodes keep the size they were created with: depth-limited
    directory leaves carry a measured size, expanded empty directories carry 0.
    """
    stack: list[DiskNode] = []
    visit: list[DiskNode] = [root]
    while visit:
        node = visit.pop()
        if not node.children:
            continue
        stack.append(node)
        visit.extend(node.children)
    for node in reversed(stack):
        node.size_bytes = sum(child.size_bytes for child in node.children)
        node.children.sort(key=lambda x: x.size_bytes, reverse=True)


def iter_nodes(root: DiskNode) -> Iterator[DiskNode]:
    """Iterate all nodes in the tree rooted at *root* (depth-first)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(node.children)


def flatten_breadth_first(root: DiskNode, max_depth: int, limit: int) -> list[DiskNode]:
    """Return up to *limit* nodes below *root* in breadth-first order.

    Nodes deeper than *max_depth* are neither returned nor expanded.
    """
    result: list[DiskNode] = []
    queue: deque[tuple[DiskNode, int]] = deque([(root, 0)])
    while queue and len(result) < limit:
        node, depth = queue.popleft()
        if depth > 0:
            result.append(node)
        if depth >= max_depth:
            continue
        queue.extend((child, depth + 1) for child in node.children)
    return result


def top_nodes(root: DiskNode, n: int, kind: NodeKind | None = None) -> list[DiskNode]:
    """Return the *n* largest nodes, excluding *root*.

    When *kind* is given, only nodes of that kind are considered.
    """
    items = (node for node in iter_nodes(root) if node.path != root.path and (kind is None or node.kind is kind))
    return heapq.nlargest(n, items, key=lambda node: node.size_bytes)
