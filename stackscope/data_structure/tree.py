from __future__ import annotations
from typing import Any, Iterator, List, Optional, Union

Number = Union[int, float]


class CallTreeNode:
    def __init__(self, frame: Any, start: Number = 0, end: Optional[Number] = None):
        """
        Initialize a CallTreeNode instance.

        A node covers the weight interval [start, end) of its view. The node is
        open while ``end`` is None.

        Args:
            frame (Any): The frame represented by this node, None for the root.
            start (Number): Offset at which the call starts.
            end (Optional[Number]): Offset at which the call ends.

        Returns:
            None

        Example:
            >>> node = CallTreeNode("main", start=0, end=5)
            >>> node.weight
            5
        """
        self._parent: Optional[CallTreeNode] = None
        self._children: List[CallTreeNode] = []
        self._frame: Any = frame
        self.start: Number = start
        self.end: Optional[Number] = end

    @property
    def parent(self) -> Optional[CallTreeNode]:
        """
        Get the parent node of this CallTreeNode.

        Returns:
            Optional[CallTreeNode]: The parent node if it exists; otherwise, None.
        """
        return self._parent

    @property
    def children(self) -> List[CallTreeNode]:
        """
        Get the child nodes in the order of their view.

        Returns:
            List[CallTreeNode]: The children of this node.

        Example:
            >>> root = CallTreeNode(None)
            >>> root.add_child(CallTreeNode("child"))
            >>> [child.frame for child in root.children]
            ['child']
        """
        return self._children

    @property
    def frame(self) -> Any:
        return self._frame

    @property
    def weight(self) -> Number:
        """
        Width of the interval covered by the node.

        Returns:
            Number: ``end - start``, or 0 while the node is still open.
        """
        if self.end is None:
            return 0
        return self.end - self.start

    @property
    def depth(self) -> int:
        return sum(1 for _ in self.backward_stack()) - 1

    def add_child(self, child: CallTreeNode):
        """
        Append a child node to the current node.

        A child already attached to another parent is detached from it first.
        Adding a node twice to the same parent is ignored.

        Args:
            child (CallTreeNode): The child node to add.

        Returns:
            None

        Example:
            >>> root = CallTreeNode(None)
            >>> child = CallTreeNode("child")
            >>> root.add_child(child)
            >>> child.parent is root
            True
        """
        if child.parent is self:
            return
        if child.parent is not None:
            child.parent.remove_child(child)
        self._children.append(child)
        child._parent = self

    def remove_child(self, child: CallTreeNode):
        if child.parent is self:
            self._children.remove(child)
            child._parent = None

    def sort_children(self, key, reverse: bool = False):
        """Stable in-place sort of the children."""
        self._children.sort(key=key, reverse=reverse)

    def backward_stack(self) -> Iterator[CallTreeNode]:
        """
        Generate an iterator for the path from the current node to the root.

        Returns:
            Iterator[CallTreeNode]: The current node followed by each successive parent.

        Example:
            >>> root = CallTreeNode("root")
            >>> child = CallTreeNode("child")
            >>> root.add_child(child)
            >>> [node.frame for node in child.backward_stack()]
            ['child', 'root']
        """
        current = self
        while current is not None:
            yield current
            current = current.parent

    def walk(self) -> Iterator[CallTreeNode]:
        """
        Pre-order traversal of the subtree rooted at this node.

        Children are visited in their stored order. The traversal uses an
        explicit stack so deep call trees do not hit the recursion limit.

        Returns:
            Iterator[CallTreeNode]: Every node of the subtree, this node first.
        """
        pending = [self]
        while pending:
            node = pending.pop()
            yield node
            pending.extend(reversed(node.children))
