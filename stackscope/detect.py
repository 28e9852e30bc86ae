"""
Format detection.

Profiling tools rarely label their output, so the format of an input is
guessed in two passes:

1. The file name is matched against FILENAME_RULES. The first matching rule
   decides the format, and a failure of its importer is final.
2. Otherwise the content is parsed as JSON and classified by SHAPE_RULES. Text
   which is not JSON is accepted as collapsed stacks when every line ends in a
   sample count.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Union

from stackscope.conf import ScopeConfig
from stackscope.errors import MalformedProfileError, UnrecognizedFormatError
from stackscope.importers import (
    import_chrome_cpu_profile,
    import_chrome_timeline,
    import_collapsed_stacks,
    import_stackprof,
)
from stackscope.profile import Profile
from stackscope.tools.decorator import returns_none_on_error

logger = logging.getLogger(__name__)

Content = Union[str, bytes, bytearray]


class ProfileFormat(Enum):
    CHROME_CPU_PROFILE = "Chrome CPU profile"
    CHROME_TIMELINE = "Chrome timeline"
    STACKPROF = "stackprof profile"
    COLLAPSED_STACKS = "collapsed stack format"


@dataclass(frozen=True)
class FilenameRule:
    format: ProfileFormat
    matches: Callable[[str], bool]


@dataclass(frozen=True)
class ShapeRule:
    format: ProfileFormat
    matches: Callable[[Any], bool]


_TIMELINE_NAME = re.compile(r"Profile-\d{8}T\d{6}")

FILENAME_RULES = (
    FilenameRule(ProfileFormat.CHROME_CPU_PROFILE, lambda name: name.endswith(".cpuprofile")),
    FilenameRule(
        ProfileFormat.CHROME_TIMELINE,
        lambda name: name.endswith(".chrome.json") or _TIMELINE_NAME.search(name) is not None,
    ),
    FilenameRule(ProfileFormat.STACKPROF, lambda name: name.endswith(".stackprof.json")),
    FilenameRule(ProfileFormat.COLLAPSED_STACKS, lambda name: name.endswith(".txt")),
)


def _is_timeline_array(data: Any) -> bool:
    return (
        isinstance(data, list)
        and len(data) > 0
        and isinstance(data[-1], dict)
        and data[-1].get("name") == "CpuProfile"
    )


def _has_keys(*keys: str) -> Callable[[Any], bool]:
    return lambda data: isinstance(data, dict) and all(key in data for key in keys)


def _has_trace_events(data: Any) -> bool:
    events = data.get("traceEvents") if isinstance(data, dict) else data
    return isinstance(events, list) and any(
        isinstance(event, dict) and event.get("name") in ("CpuProfile", "ProfileChunk")
        for event in events
    )


SHAPE_RULES = (
    ShapeRule(ProfileFormat.CHROME_TIMELINE, _is_timeline_array),
    ShapeRule(ProfileFormat.CHROME_CPU_PROFILE, _has_keys("nodes", "samples", "timeDeltas")),
    ShapeRule(ProfileFormat.STACKPROF, _has_keys("mode", "frames")),
    ShapeRule(ProfileFormat.CHROME_TIMELINE, _has_trace_events),
)


def looks_like_collapsed_stacks(text: str) -> bool:
    """
    Check whether every line of ``text`` ends in a space followed by an integer.

    Args:
        text (str): Raw file content.

    Returns:
        bool: True when there is more than one line and removing the trailing
        counts splits the text exactly at its line breaks.

    Example:
        >>> looks_like_collapsed_stacks("a 1\\nb 2\\n")
        True
        >>> looks_like_collapsed_stacks("hello\\nworld\\n")
        False
    """
    line_count = len(text.split("\n"))
    return line_count > 1 and line_count == len(re.split(r" \d+\n", text))


def _to_text(content: Content) -> str:
    if isinstance(content, str):
        return content
    try:
        return bytes(content).decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UnrecognizedFormatError(f"Content is not UTF-8 text: {e}") from e


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise MalformedProfileError(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise MalformedProfileError("JSON document is nested too deeply") from e


def _detect(text: str, file_name: str) -> Tuple[ProfileFormat, Optional[Any]]:
    for rule in FILENAME_RULES:
        if rule.matches(file_name):
            logger.debug(f"File name {file_name!r} implies {rule.format.value}")
            return rule.format, None

    try:
        data = json.loads(text)
    except ValueError:
        if looks_like_collapsed_stacks(text):
            return ProfileFormat.COLLAPSED_STACKS, None
        raise UnrecognizedFormatError(f"{file_name!r} is neither JSON nor collapsed stacks")
    except RecursionError as e:
        raise UnrecognizedFormatError(f"JSON document {file_name!r} is nested too deeply") from e

    for rule in SHAPE_RULES:
        if rule.matches(data):
            logger.debug(f"Document shape of {file_name!r} matches {rule.format.value}")
            return rule.format, data
    raise UnrecognizedFormatError(f"JSON document {file_name!r} has no known shape")


def detect_format(content: Content, file_name: str = "") -> ProfileFormat:
    """
    Determine the format of an input without decoding it.

    Args:
        content (Content): Raw file content.
        file_name (str): Name of the file the content was read from.

    Returns:
        ProfileFormat: The detected format.

    Raises:
        UnrecognizedFormatError: If no rule or heuristic matches.
    """
    return _detect(_to_text(content), file_name)[0]


def decode(
    profile_format: ProfileFormat,
    text: str,
    data: Optional[Any] = None,
    config: Optional[ScopeConfig] = None,
) -> Profile:
    """
    Run the importer of ``profile_format``.

    Args:
        profile_format (ProfileFormat): Which importer to use.
        text (str): Raw file content.
        data (Optional[Any]): Already parsed JSON, parsed from ``text`` when omitted.
        config (Optional[ScopeConfig]): Import configuration.

    Returns:
        Profile: The decoded profile.

    Raises:
        MalformedProfileError: If the importer cannot decode the content.
    """
    logger.info(f"Importing as {profile_format.value}")
    if profile_format is ProfileFormat.COLLAPSED_STACKS:
        return import_collapsed_stacks(text)
    if data is None:
        data = _parse_json(text)
    if profile_format is ProfileFormat.CHROME_CPU_PROFILE:
        return import_chrome_cpu_profile(data, config)
    if profile_format is ProfileFormat.CHROME_TIMELINE:
        return import_chrome_timeline(data, config)
    return import_stackprof(data)


def load_profile(content: Content, file_name: str = "", config: Optional[ScopeConfig] = None) -> Profile:
    """
    Detect the format of ``content`` and decode it.

    Raises:
        UnrecognizedFormatError: If the format could not be determined.
        MalformedProfileError: If the chosen importer failed.
    """
    text = _to_text(content)
    profile_format, data = _detect(text, file_name)
    return decode(profile_format, text, data, config)


@returns_none_on_error
def import_profile(
    content: Content, file_name: str = "", config: Optional[ScopeConfig] = None
) -> Optional[Profile]:
    """
    Import a profile of any supported format.

    Args:
        content (Content): Raw file content, text or bytes.
        file_name (str): Name of the file, used as the first detection hint.
        config (Optional[ScopeConfig]): Import configuration.

    Returns:
        Optional[Profile]: The profile, or None if the input is unrecognized or malformed.

    Example:
        >>> import_profile("a 1\\nb 2\\n", "stacks").total_weight
        3
    """
    return load_profile(content, file_name, config)
