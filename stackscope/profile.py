"""
Canonical profile model shared by every importer and every view.

A profile is an ordered list of samples. Each sample is a stack of frames,
outermost first, together with the weight it contributes. An empty stack is an
idle sample: its weight advances time but is attributed to no frame. The call
events consumed by the views are derived from the samples on demand.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from stackscope.errors import MalformedProfileError
from stackscope.formatters import RawValueFormatter, ValueFormatter

Number = Union[int, float]


@dataclass(frozen=True, eq=False)
class Frame:
    """
    Identity of a call-stack location.

    Frames compare by identity. Two stack entries with the same key always
    resolve to the same instance through a FrameTable, so ``is`` and ``==``
    agree inside one profile.
    """

    key: Hashable
    name: str
    file: Optional[str] = None
    line: Optional[int] = None
    col: Optional[int] = None

    def __repr__(self) -> str:
        if self.file:
            return f"Frame({self.name!r} at {self.file}:{self.line})"
        return f"Frame({self.name!r})"


class FrameTable:
    """Deduplicates frames by key, keeping first-insertion order."""

    def __init__(self):
        self._frames: Dict[Hashable, Frame] = {}

    def get_or_insert(
        self,
        key: Hashable,
        name: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        col: Optional[int] = None,
    ) -> Frame:
        """
        Return the frame stored under ``key``, creating it on first use.

        Args:
            key (Hashable): Identity of the frame within its profile.
            name (str): Display name.
            file (Optional[str]): Source file, if known.
            line (Optional[int]): Source line, if known.
            col (Optional[int]): Source column, if known.

        Returns:
            Frame: The unique frame for ``key``.

        Example:
            >>> table = FrameTable()
            >>> table.get_or_insert("a", "a") is table.get_or_insert("a", "a")
            True
        """
        frame = self._frames.get(key)
        if frame is None:
            frame = Frame(key=key, name=name, file=file, line=line, col=col)
            self._frames[key] = frame
        return frame

    def owns(self, frame: Frame) -> bool:
        return self._frames.get(frame.key) is frame

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames.values())


class CallEventKind(Enum):
    OPEN = "open"
    CLOSE = "close"


class CallEvent(NamedTuple):
    """A frame entering or leaving the stack at a weight offset."""

    kind: CallEventKind
    frame: Frame
    value: Number


class _GroupedNode:
    __slots__ = ("frame", "weight", "children")

    def __init__(self, frame: Optional[Frame]):
        self.frame = frame
        self.weight: Number = 0
        self.children: Dict[Frame, _GroupedNode] = {}


class Profile:
    """
    One imported profiling session.

    Profiles are created by ProfileBuilder and are read-only afterwards, apart
    from the display name which is assigned once the import succeeded.
    """

    def __init__(
        self,
        frames: Tuple[Frame, ...],
        samples: Tuple[Tuple[Frame, ...], ...],
        weights: Tuple[Number, ...],
        formatter: ValueFormatter,
    ):
        self._name: Optional[str] = None
        self._frames = frames
        self._samples = samples
        self._weights = weights
        self._formatter = formatter
        self._total_weight = sum(weights)
        self._total_non_idle_weight = sum(
            weight for stack, weight in zip(samples, weights) if stack
        )

    @property
    def name(self) -> str:
        return self._name or ""

    def set_name(self, name: str):
        """
        Assign the display name, once, after the import succeeded.

        Raises:
            ValueError: If the profile already has a name.
        """
        if self._name is not None:
            raise ValueError(f"Profile is already named {self._name!r}")
        self._name = name

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return self._frames

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def total_weight(self) -> Number:
        return self._total_weight

    @property
    def total_non_idle_weight(self) -> Number:
        return self._total_non_idle_weight

    @property
    def formatter(self) -> ValueFormatter:
        return self._formatter

    def format_value(self, value: Number) -> str:
        return self._formatter.format(value)

    def samples(self) -> Iterator[Tuple[Tuple[Frame, ...], Number]]:
        return zip(self._samples, self._weights)

    def iter_calls(self) -> Iterator[CallEvent]:
        """
        Yield the call events of the profile in chronological order.

        Consecutive samples sharing a stack prefix keep those frames open, so a
        frame which stays on the stack across several samples is a single call.
        Every opened frame is closed before the iterator is exhausted.

        Yields:
            CallEvent: Open and close events with their weight offsets.
        """
        current: Tuple[Frame, ...] = ()
        value: Number = 0
        for stack, weight in zip(self._samples, self._weights):
            prefix = 0
            limit = min(len(current), len(stack))
            while prefix < limit and current[prefix] is stack[prefix]:
                prefix += 1
            for frame in reversed(current[prefix:]):
                yield CallEvent(CallEventKind.CLOSE, frame, value)
            for frame in stack[prefix:]:
                yield CallEvent(CallEventKind.OPEN, frame, value)
            current = stack
            value += weight
        for frame in reversed(current):
            yield CallEvent(CallEventKind.CLOSE, frame, value)

    def iter_calls_grouped(self) -> Iterator[CallEvent]:
        """
        Yield call events of the grouped call tree.

        Repeated invocations of the same frame under the same parent are
        merged into one call whose weight is the sum of the invocations.
        Siblings are emitted in order of first occurrence and idle samples
        are left out.

        Yields:
            CallEvent: Open and close events with their weight offsets.
        """
        root = self._grouped_root()
        offset: Number = 0
        pending = [iter(root.children.values())]
        open_nodes: List[Tuple[_GroupedNode, Number]] = []
        while pending:
            child = next(pending[-1], None)
            if child is None:
                pending.pop()
                if open_nodes:
                    node, start = open_nodes.pop()
                    offset = start + node.weight
                    yield CallEvent(CallEventKind.CLOSE, node.frame, offset)
                continue
            yield CallEvent(CallEventKind.OPEN, child.frame, offset)
            open_nodes.append((child, offset))
            pending.append(iter(child.children.values()))

    def _grouped_root(self) -> _GroupedNode:
        root = _GroupedNode(None)
        for stack, weight in zip(self._samples, self._weights):
            if not stack:
                continue
            root.weight += weight
            node = root
            for frame in stack:
                child = node.children.get(frame)
                if child is None:
                    child = _GroupedNode(frame)
                    node.children[frame] = child
                child.weight += weight
                node = child
        return root


class ProfileBuilder:
    """
    Accumulates frames and samples and produces an immutable Profile.

    Importers own one builder each; a builder raises MalformedProfileError as
    soon as it is fed something that would break the profile invariants.

    Example:
        >>> builder = ProfileBuilder()
        >>> a = builder.frame("a", "a")
        >>> builder.append_sample([a], 3)
        >>> builder.build().total_weight
        3
    """

    def __init__(self, formatter: Optional[ValueFormatter] = None):
        self._table = FrameTable()
        self._samples: List[Tuple[Frame, ...]] = []
        self._weights: List[Number] = []
        self._total: Number = 0
        self._formatter = formatter or RawValueFormatter()

    def frame(
        self,
        key: Hashable,
        name: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        col: Optional[int] = None,
    ) -> Frame:
        return self._table.get_or_insert(key, name, file=file, line=line, col=col)

    def set_formatter(self, formatter: ValueFormatter):
        self._formatter = formatter

    def append_sample(self, stack: Sequence[Frame], weight: Number):
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise MalformedProfileError(f"Sample weight must be a number, got {weight!r}")
        try:
            # The running total must stay representable as a float too
            finite = math.isfinite(weight) and math.isfinite(self._total + weight)
        except OverflowError:
            raise MalformedProfileError("Sample weight is too large to represent") from None
        if not finite or weight < 0:
            raise MalformedProfileError(f"Sample weight must be finite and non-negative, got {weight}")
        for frame in stack:
            if not self._table.owns(frame):
                raise MalformedProfileError(f"{frame!r} was not created by this profile")
        self._samples.append(tuple(stack))
        self._weights.append(weight)
        self._total += weight

    def append_idle(self, weight: Number):
        self.append_sample((), weight)

    def build(self) -> Profile:
        return Profile(
            frames=tuple(self._table),
            samples=tuple(self._samples),
            weights=tuple(self._weights),
            formatter=self._formatter,
        )
