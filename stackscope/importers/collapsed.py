"""
Importer for the collapsed stack format of Brendan Gregg's FlameGraph scripts.

Every line is a semicolon separated stack, outermost frame first, followed by
a space and the number of samples of that stack::

    main;parse;read 12
    main;render 30
"""

import re

from stackscope.errors import MalformedProfileError
from stackscope.formatters import RawValueFormatter
from stackscope.profile import Profile, ProfileBuilder
from stackscope.tools.decorator import raises_malformed

_LINE = re.compile(r"^(.*) (\d+)$")


@raises_malformed
def import_collapsed_stacks(text: str) -> Profile:
    """
    Decode collapsed stacks.

    Lines are replayed in file order. Blank lines are skipped and a line with
    an empty stack is recorded as idle.

    Args:
        text (str): The raw file content.

    Returns:
        Profile: A profile weighted in samples.

    Raises:
        MalformedProfileError: If a line does not end in a sample count, or there are no lines.
    """
    builder = ProfileBuilder(RawValueFormatter())
    lines = 0
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        match = _LINE.match(line)
        if match is None:
            raise MalformedProfileError(f"Line {lineno} does not end in a sample count: {line!r}")
        stack_text, count = match.groups()
        stack = [builder.frame(name, name) for name in stack_text.split(";") if name]
        builder.append_sample(stack, int(count))
        lines += 1
    if lines == 0:
        raise MalformedProfileError("No stacks found")
    return builder.build()
