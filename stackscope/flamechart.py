"""
Tree views derived from a profile.

Two views exist for every profile. The chronological view keeps calls in the
order they happened. The left-heavy view merges repeated calls of a frame under
the same parent and sorts every node's children by descending weight.
"""

import logging
import math
from typing import Callable, Iterable, Iterator, List, Union

from stackscope.data_structure import CallTreeNode
from stackscope.errors import ProfileInvariantError
from stackscope.formatters import ValueFormatter
from stackscope.profile import CallEvent, CallEventKind, Profile

logger = logging.getLogger(__name__)

Number = Union[int, float]


class Flamechart:
    """
    An immutable weighted call tree handed to renderers.

    The root node carries no frame and spans the whole weight of the view.
    """

    def __init__(self, root: CallTreeNode, total_weight: Number, formatter: ValueFormatter):
        self._root = root
        self._total_weight = total_weight
        self._formatter = formatter
        self._layers = self._collect_layers(root)

    @property
    def root(self) -> CallTreeNode:
        return self._root

    @property
    def total_weight(self) -> Number:
        return self._total_weight

    @property
    def layers(self) -> List[List[CallTreeNode]]:
        """Nodes grouped by depth, each layer ordered left to right."""
        return self._layers

    @property
    def depth(self) -> int:
        return len(self._layers)

    def format_value(self, value: Number) -> str:
        return self._formatter.format(value)

    def walk(self) -> Iterator[CallTreeNode]:
        """Pre-order traversal of every node below the root."""
        nodes = self._root.walk()
        next(nodes)
        return nodes

    def visit(self, callback: Callable[[CallTreeNode], None]):
        for node in self.walk():
            callback(node)

    @staticmethod
    def _collect_layers(root: CallTreeNode) -> List[List[CallTreeNode]]:
        layers: List[List[CallTreeNode]] = []
        current = list(root.children)
        while current:
            layers.append(current)
            current = [child for node in current for child in node.children]
        return layers


def _build_tree(events: Iterable[CallEvent], total_weight: Number) -> CallTreeNode:
    root = CallTreeNode(None, start=0)
    stack = [root]
    for event in events:
        if event.kind is CallEventKind.OPEN:
            node = CallTreeNode(event.frame, start=event.value)
            stack[-1].add_child(node)
            stack.append(node)
            continue
        if len(stack) == 1:
            raise ProfileInvariantError(f"Close of {event.frame!r} without a matching open")
        node = stack.pop()
        if node.frame is not event.frame:
            raise ProfileInvariantError(
                f"Close of {event.frame!r} while {node.frame!r} is the innermost open call"
            )
        if event.value < node.start:
            raise ProfileInvariantError(f"{event.frame!r} closes before it opens")
        node.end = event.value
    if len(stack) != 1:
        raise ProfileInvariantError(f"{len(stack) - 1} calls were never closed")
    root.end = total_weight
    return root


def _sort_left_heavy(root: CallTreeNode):
    for node in root.walk():
        node.sort_children(key=lambda child: child.weight, reverse=True)
        offset = node.start
        for child in node.children:
            weight = child.weight
            child.start = offset
            child.end = offset + weight
            offset = child.end


def build_chronological(profile: Profile) -> Flamechart:
    """
    Build the time-ordered view of a profile.

    Args:
        profile (Profile): The imported profile.

    Returns:
        Flamechart: A view whose root spans the total weight of the profile.
    """
    root = _build_tree(profile.iter_calls(), profile.total_weight)
    return Flamechart(root, profile.total_weight, profile.formatter)


def build_left_heavy(profile: Profile) -> Flamechart:
    """
    Build the grouped view of a profile.

    Repeated sibling calls are merged, then every node's children are sorted by
    descending weight. Ties keep their order of first occurrence.

    Args:
        profile (Profile): The imported profile.

    Returns:
        Flamechart: A view whose root spans the total non-idle weight of the profile.
    """
    root = _build_tree(profile.iter_calls_grouped(), profile.total_non_idle_weight)
    _sort_left_heavy(root)
    return Flamechart(root, profile.total_non_idle_weight, profile.formatter)


def check_invariants(
    chart: Flamechart,
    expected_total: Number,
    exact_total: bool = False,
    tolerance: float = 1e-6,
):
    """
    Verify weight conservation of a view.

    Args:
        chart (Flamechart): The view to check.
        expected_total (Number): Weight the root must span.
        exact_total (bool): Require the root's children to add up to the root weight.
        tolerance (float): Relative tolerance for float comparisons.

    Raises:
        ProfileInvariantError: If any node is inconsistent.
    """
    slack = tolerance * max(1.0, abs(expected_total))

    def close(a: Number, b: Number) -> bool:
        return math.isclose(a, b, rel_tol=0, abs_tol=slack)

    root = chart.root
    if not close(root.weight, expected_total):
        raise ProfileInvariantError(
            f"Root weight {root.weight} differs from expected total {expected_total}"
        )
    if exact_total and not close(sum(child.weight for child in root.children), root.weight):
        raise ProfileInvariantError("Children of the root do not add up to the root weight")

    for node in root.walk():
        if node.end is None or node.weight < -slack:
            raise ProfileInvariantError(f"Node {node.frame!r} has an invalid interval")
        cursor = node.start
        for child in node.children:
            if child.start < cursor - slack:
                raise ProfileInvariantError(f"Node {child.frame!r} overlaps its previous sibling")
            cursor = child.end
        if cursor > node.end + slack:
            raise ProfileInvariantError(f"Children of {node.frame!r} exceed its interval")
    logger.debug(f"View with {chart.depth} layers passed invariant checks")
