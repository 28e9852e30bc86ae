"""Importer for the JSON output of Ruby's stackprof (``stackprof --json``)."""

import logging
from typing import Any, Dict

from stackscope.errors import MalformedProfileError
from stackscope.formatters import RawValueFormatter, TimeFormatter
from stackscope.profile import Profile, ProfileBuilder
from stackscope.tools.decorator import raises_malformed

logger = logging.getLogger(__name__)


@raises_malformed
def import_stackprof(data: Dict[str, Any]) -> Profile:
    """
    Decode a stackprof profile recorded with ``raw: true``.

    ``raw`` is a flat list of records ``[height, frame_id * height, count]``
    with stacks listed outermost frame first. In ``wall`` and ``cpu`` mode the
    weight of a record is the sum of its ``raw_timestamp_deltas`` in
    microseconds, or ``count * interval`` when the deltas are absent. In
    ``object`` mode the weight is the number of allocations.

    Args:
        data (Dict[str, Any]): The decoded JSON document.

    Returns:
        Profile: The decoded profile.

    Raises:
        MalformedProfileError: If a record is truncated or references an unknown frame.
    """
    if not isinstance(data, dict):
        raise MalformedProfileError("A stackprof profile must be a JSON object")
    mode = data["mode"]
    frames = data["frames"]
    raw = data.get("raw")
    if raw is None:
        raise MalformedProfileError("stackprof profile was recorded without raw samples")
    deltas = data.get("raw_timestamp_deltas")
    by_count = mode == "object"
    interval = 1 if by_count else data.get("interval", 1)

    builder = ProfileBuilder(RawValueFormatter() if by_count else TimeFormatter("microseconds"))
    index = 0
    sample_index = 0
    while index < len(raw):
        height = raw[index]
        frame_ids = raw[index + 1 : index + 1 + height]
        if len(frame_ids) != height:
            raise MalformedProfileError(f"Truncated stack at raw offset {index}")
        index += 1 + height
        count = raw[index]
        index += 1

        stack = []
        for frame_id in frame_ids:
            info = frames[str(frame_id)]
            stack.append(
                builder.frame(
                    str(frame_id),
                    info["name"],
                    file=info.get("file"),
                    line=info.get("line"),
                )
            )

        if deltas and not by_count:
            window = deltas[sample_index : sample_index + count]
            if len(window) != count:
                raise MalformedProfileError("raw_timestamp_deltas is shorter than the sample count")
            weight = sum(window)
        else:
            weight = count * interval
        sample_index += count
        builder.append_sample(stack, weight)

    logger.debug(f"Decoded {sample_index} stackprof samples in {mode} mode")
    return builder.build()
