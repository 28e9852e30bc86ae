import polars as pl

from stackscope.profile import Profile

FRAME_TABLE_COLUMNS = ["name", "file", "line", "self_weight", "total_weight"]


def frame_table(profile: Profile) -> pl.DataFrame:
    """
    Summarize the weight attributed to every frame of a profile.

    ``self_weight`` is the weight of samples whose innermost frame is the frame.
    ``total_weight`` is the weight of samples in which the frame appears at all;
    a recursive frame counts once per sample. Idle samples are ignored.

    Args:
        profile (Profile): The imported profile.

    Returns:
        pl.DataFrame: One row per frame, heaviest total weight first. Frames of
        equal weight keep their order of first appearance.

    Example:
        >>> from stackscope.detect import import_profile
        >>> table = frame_table(import_profile("a;b 2\\na 1\\n", "stacks.txt"))
        >>> table["name"].to_list()
        ['a', 'b']
    """
    index = {frame: i for i, frame in enumerate(profile.frames)}
    frame_ids = []
    weights = []
    leaf_flags = []
    for stack, weight in profile.samples():
        if not stack:
            continue
        leaf = stack[-1]
        for frame in dict.fromkeys(stack):
            frame_ids.append(index[frame])
            weights.append(float(weight))
            leaf_flags.append(frame is leaf)

    samples = pl.DataFrame(
        {"frame_id": frame_ids, "weight": weights, "is_leaf": leaf_flags},
        schema={"frame_id": pl.Int64, "weight": pl.Float64, "is_leaf": pl.Boolean},
    )
    per_frame = samples.group_by("frame_id").agg(
        pl.col("weight").filter(pl.col("is_leaf")).sum().alias("self_weight"),
        pl.col("weight").sum().alias("total_weight"),
    )
    frames = pl.DataFrame(
        {
            "frame_id": list(range(len(profile.frames))),
            "name": [frame.name for frame in profile.frames],
            "file": [frame.file for frame in profile.frames],
            "line": [frame.line for frame in profile.frames],
        },
        schema={"frame_id": pl.Int64, "name": pl.Utf8, "file": pl.Utf8, "line": pl.Int64},
    )
    return (
        frames.join(per_frame, on="frame_id", how="left")
        .with_columns(
            pl.col("self_weight").fill_null(0.0),
            pl.col("total_weight").fill_null(0.0),
        )
        .sort(["total_weight", "frame_id"], descending=[True, False])
        .select(FRAME_TABLE_COLUMNS)
    )


def top_frames(profile: Profile, limit: int = 20, by: str = "self_weight") -> pl.DataFrame:
    """Return the ``limit`` heaviest frames ordered by ``by``."""
    if by not in ("self_weight", "total_weight"):
        raise ValueError(f"Cannot rank frames by {by!r}")
    return frame_table(profile).sort(by, descending=True, maintain_order=True).head(limit)
