"""
Shared pytest fixtures for stackscope tests.

Each sample document comes with the ground truth it was written for, so tests
can compare decoded totals and frame counts against known values.
"""

import json
import random

import pytest


def make_cpuprofile():
    """
    A small Chrome CPU profile.

    Samples (10us apart): parse, parse, render, (idle), main.
    Total weight 50us, non-idle weight 40us, frames main/parse/render.
    """
    return {
        "nodes": [
            {"id": 1, "callFrame": {"functionName": "(root)", "url": "", "lineNumber": -1, "columnNumber": -1}, "children": [2, 5]},
            {"id": 2, "callFrame": {"functionName": "main", "url": "app.js", "lineNumber": 0, "columnNumber": 0}, "children": [3, 4]},
            {"id": 3, "callFrame": {"functionName": "parse", "url": "app.js", "lineNumber": 9, "columnNumber": 2}},
            {"id": 4, "callFrame": {"functionName": "render", "url": "app.js", "lineNumber": 19, "columnNumber": 2}},
            {"id": 5, "callFrame": {"functionName": "(idle)", "url": "", "lineNumber": -1, "columnNumber": -1}},
        ],
        "startTime": 1000,
        "endTime": 1055,
        "samples": [3, 3, 4, 5, 2],
        "timeDeltas": [5, 10, 10, 10, 10],
    }


def make_stackprof(with_deltas=True, mode="wall"):
    """
    A stackprof profile with records main>work x3, main>sleep x1, main>work x2.

    With deltas the weights are 600, 400 and 1100 microseconds.
    """
    data = {
        "version": 1.2,
        "mode": mode,
        "interval": 1000,
        "frames": {
            "1": {"name": "main", "file": "app.rb", "line": 1},
            "2": {"name": "work", "file": "app.rb", "line": 5},
            "3": {"name": "sleep", "file": "app.rb", "line": 9},
        },
        "raw": [2, 1, 2, 3, 2, 1, 3, 1, 2, 1, 2, 2],
    }
    if with_deltas:
        data["raw_timestamp_deltas"] = [100, 200, 300, 400, 500, 600]
    return data


COLLAPSED_STACKS = "main;a;b 3\nmain;c 5\nmain;a 2\n"


def generate_collapsed(seed, lines=40, names=8, depth=6):
    """Random collapsed stacks together with their total weight and distinct frame count."""
    rng = random.Random(seed)
    pool = [f"fn_{i}" for i in range(names)]
    text_lines = []
    total = 0
    seen = set()
    for _ in range(lines):
        stack = [rng.choice(pool) for _ in range(rng.randint(1, depth))]
        weight = rng.randint(0, 50)
        seen.update(stack)
        total += weight
        text_lines.append(f"{';'.join(stack)} {weight}")
    return "\n".join(text_lines) + "\n", total, len(seen)


def generate_cpuprofile(seed, samples=60, names=6):
    """Random single-chain CPU profile with its total weight and distinct frame count."""
    rng = random.Random(seed)
    nodes = [{"id": 1, "callFrame": {"functionName": "(root)", "url": "", "lineNumber": -1, "columnNumber": -1}, "children": []}]
    for node_id in range(2, names + 2):
        parent = rng.randint(1, node_id - 1)
        nodes.append(
            {
                "id": node_id,
                "callFrame": {"functionName": f"fn_{node_id}", "url": "gen.js", "lineNumber": node_id, "columnNumber": 0},
                "children": [],
            }
        )
        nodes[parent - 1]["children"].append(node_id)
    sample_ids = [rng.randint(2, names + 1) for _ in range(samples)]
    deltas = [rng.randint(1, 100) for _ in range(samples)]
    end_gap = rng.randint(1, 100)
    document = {
        "nodes": nodes,
        "startTime": 0,
        "endTime": sum(deltas) + end_gap,
        "samples": sample_ids,
        "timeDeltas": deltas,
    }
    # The first delta only positions the first sample after startTime
    total = sum(deltas[1:]) + end_gap
    sampled = set(sample_ids)
    parents = {child: node["id"] for node in nodes for child in node["children"]}
    reachable = set()
    for node_id in sampled:
        while node_id != 1:
            reachable.add(node_id)
            node_id = parents[node_id]
    return document, total, len(reachable)


def generate_stackprof(seed, records=30, names=6, depth=5):
    """Random stackprof profile with timestamp deltas, its total weight and distinct frame count."""
    rng = random.Random(seed)
    frames = {str(i): {"name": f"fn_{i}", "file": "gen.rb", "line": i} for i in range(1, names + 1)}
    raw = []
    deltas = []
    used = set()
    for _ in range(records):
        stack = [rng.randint(1, names) for _ in range(rng.randint(1, depth))]
        count = rng.randint(1, 4)
        raw.extend([len(stack), *stack, count])
        deltas.extend(rng.randint(1, 500) for _ in range(count))
        used.update(stack)
    document = {
        "version": 1.2,
        "mode": "wall",
        "interval": 1000,
        "frames": frames,
        "raw": raw,
        "raw_timestamp_deltas": deltas,
    }
    return document, sum(deltas), len(used)


def generate_timeline(seed, chunks=3):
    """
    Random CPU profile split over Profile and ProfileChunk events.

    A chunk of an unrelated profile id is mixed in and must be ignored.
    Returns the trace events with the total weight and distinct frame count.
    """
    document, total, frame_count = generate_cpuprofile(seed)

    def split(items):
        size = -(-len(items) // chunks)
        return [items[i * size : (i + 1) * size] for i in range(chunks)]

    events = [
        {"name": "TracingStartedInPage", "ph": "I", "ts": 0, "args": {}},
        {"name": "Profile", "ph": "P", "id": "0x1", "ts": 0, "args": {"data": {"startTime": document["startTime"]}}},
        {
            "name": "ProfileChunk",
            "ph": "P",
            "id": "0x2",
            "ts": 0,
            "args": {"data": {"cpuProfile": {"nodes": [], "samples": [999]}, "timeDeltas": [1]}},
        },
    ]
    parts = zip(split(document["nodes"]), split(document["samples"]), split(document["timeDeltas"]))
    for index, (nodes, samples, deltas) in enumerate(parts):
        data = {"cpuProfile": {"nodes": nodes, "samples": samples}, "timeDeltas": deltas}
        if index == chunks - 1:
            data["endTime"] = document["endTime"]
        events.append({"name": "ProfileChunk", "ph": "P", "id": "0x1", "ts": index + 1, "args": {"data": data}})
    return events, total, frame_count


@pytest.fixture
def cpuprofile():
    return make_cpuprofile()


@pytest.fixture
def cpuprofile_text():
    return json.dumps(make_cpuprofile())


@pytest.fixture
def stackprof():
    return make_stackprof()


@pytest.fixture
def stackprof_text():
    return json.dumps(make_stackprof())


@pytest.fixture
def timeline():
    return [
        {"name": "TracingStartedInPage", "ph": "I", "ts": 0, "args": {}},
        {"name": "CpuProfile", "ph": "I", "ts": 1, "args": {"data": {"cpuProfile": make_cpuprofile()}}},
    ]


@pytest.fixture
def collapsed_text():
    return COLLAPSED_STACKS
