"""
Importers for profiles recorded by Chrome and other V8 based runtimes.

Two encodings are handled. A ``.cpuprofile`` document holds a node table, the
sampled node ids and the time between samples in microseconds. A timeline
trace is a list of trace events which embeds such a document, either whole in
a ``CpuProfile`` event or split over a ``Profile`` event and its
``ProfileChunk`` events.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from stackscope.conf import ScopeConfig
from stackscope.errors import MalformedProfileError
from stackscope.formatters import TimeFormatter
from stackscope.profile import Frame, Profile, ProfileBuilder
from stackscope.tools.decorator import raises_malformed

logger = logging.getLogger(__name__)


def _frame_for(builder: ProfileBuilder, call_frame: Dict[str, Any]) -> Frame:
    name = call_frame.get("functionName") or "(anonymous)"
    url = call_frame.get("url") or None
    line = call_frame.get("lineNumber")
    col = call_frame.get("columnNumber")
    # Chrome reports zero-based positions
    line = line + 1 if isinstance(line, int) and line >= 0 else None
    col = col + 1 if isinstance(col, int) and col >= 0 else None
    return builder.frame((name, url, line, col), name, file=url, line=line, col=col)


def _parent_table(nodes: List[Dict[str, Any]]) -> Dict[Any, Any]:
    parents = {}
    for node in nodes:
        for child_id in node.get("children") or []:
            parents[child_id] = node["id"]
        if node.get("parent") is not None:
            parents[node["id"]] = node["parent"]
    return parents


def _sample_times(data: Dict[str, Any]) -> List[float]:
    elapsed = data.get("startTime") or 0
    times = []
    for delta in data["timeDeltas"]:
        if isinstance(delta, bool) or not isinstance(delta, (int, float)):
            raise MalformedProfileError(f"Invalid time delta {delta!r}")
        elapsed += delta
        times.append(elapsed)
    return times


@raises_malformed
def import_chrome_cpu_profile(data: Dict[str, Any], config: Optional[ScopeConfig] = None) -> Profile:
    """
    Decode a Chrome CPU profile (``.cpuprofile``).

    Each sample lasts until the next sample. The last sample lasts until
    ``endTime`` when the document has one. Samples are ordered by timestamp
    first, since Chrome occasionally records them slightly out of order.

    Args:
        data (Dict[str, Any]): The decoded JSON document.
        config (Optional[ScopeConfig]): Names of idle and synthetic root frames.

    Returns:
        Profile: The decoded profile, weighted in microseconds.

    Raises:
        MalformedProfileError: If a required field is missing or inconsistent.
    """
    config = config or ScopeConfig()
    if not isinstance(data, dict):
        raise MalformedProfileError("A CPU profile must be a JSON object")
    nodes = data["nodes"]
    samples = data["samples"]
    times = _sample_times(data)
    if len(samples) != len(times):
        raise MalformedProfileError(
            f"{len(samples)} samples but {len(times)} time deltas"
        )

    by_id = {node["id"]: node for node in nodes}
    parents = _parent_table(nodes)
    root_names = set(config.root_frame_names)
    idle_names = set(config.idle_frame_names)

    builder = ProfileBuilder(TimeFormatter("microseconds"))
    stacks: Dict[Any, Tuple[Frame, ...]] = {}

    def stack_for(node_id) -> Tuple[Frame, ...]:
        chain = []
        current = node_id
        while current is not None and current not in stacks:
            chain.append(current)
            if len(chain) > len(by_id):
                raise MalformedProfileError(f"Parent chain of node {node_id} has a cycle")
            current = parents.get(current)
        base = stacks[current] if current is not None else ()
        for chained_id in reversed(chain):
            call_frame = by_id[chained_id]["callFrame"]
            if call_frame.get("functionName") not in root_names:
                base = base + (_frame_for(builder, call_frame),)
            stacks[chained_id] = base
        return stacks[node_id]

    order = sorted(range(len(samples)), key=lambda index: times[index])
    end_time = data.get("endTime")
    for position, index in enumerate(order):
        node_id = samples[index]
        if position + 1 < len(order):
            weight = times[order[position + 1]] - times[index]
        elif isinstance(end_time, (int, float)) and end_time > times[index]:
            weight = end_time - times[index]
        else:
            weight = 0
        if by_id[node_id]["callFrame"].get("functionName") in idle_names:
            builder.append_idle(weight)
        else:
            builder.append_sample(stack_for(node_id), weight)

    logger.debug(f"Decoded {len(samples)} samples over {len(nodes)} nodes")
    return builder.build()


def _stitch_profile_chunks(events: List[Any]) -> Optional[Dict[str, Any]]:
    profile_event = next(
        (e for e in events if isinstance(e, dict) and e.get("name") == "Profile"), None
    )
    if profile_event is None:
        return None
    profile_id = profile_event.get("id")
    head = (profile_event.get("args") or {}).get("data") or {}
    stitched: Dict[str, Any] = {
        "nodes": [],
        "samples": [],
        "timeDeltas": [],
        "startTime": head.get("startTime", 0),
    }
    for event in events:
        if not isinstance(event, dict) or event.get("name") != "ProfileChunk":
            continue
        if event.get("id") != profile_id:
            continue
        chunk = event["args"]["data"]
        cpu_profile = chunk.get("cpuProfile") or {}
        stitched["nodes"].extend(cpu_profile.get("nodes") or [])
        stitched["samples"].extend(cpu_profile.get("samples") or [])
        stitched["timeDeltas"].extend(chunk.get("timeDeltas") or [])
        if "endTime" in chunk:
            stitched["endTime"] = chunk["endTime"]
    return stitched


@raises_malformed
def import_chrome_timeline(data: Any, config: Optional[ScopeConfig] = None) -> Profile:
    """
    Decode a Chrome timeline trace.

    The trace is either a bare list of trace events or an object holding them
    under ``traceEvents``. When several CPU profiles are present the first one
    is used.

    Args:
        data (Any): The decoded JSON document.
        config (Optional[ScopeConfig]): Forwarded to the CPU profile importer.

    Returns:
        Profile: The embedded CPU profile.

    Raises:
        MalformedProfileError: If the trace holds no CPU profile.
    """
    events = data["traceEvents"] if isinstance(data, dict) else data
    if not isinstance(events, list):
        raise MalformedProfileError("A timeline must be a list of trace events")

    for event in events:
        if isinstance(event, dict) and event.get("name") == "CpuProfile":
            event_data = event["args"]["data"]
            cpu_profile = dict(event_data["cpuProfile"])
            if "timeDeltas" not in cpu_profile and "timeDeltas" in event_data:
                cpu_profile["timeDeltas"] = event_data["timeDeltas"]
            return import_chrome_cpu_profile(cpu_profile, config)

    stitched = _stitch_profile_chunks(events)
    if stitched is not None:
        logger.debug("Timeline has no CpuProfile event, using ProfileChunk events")
        return import_chrome_cpu_profile(stitched, config)

    raise MalformedProfileError("Could not find a CPU profile in the timeline")
