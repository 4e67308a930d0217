"""Text normalization helpers for user-supplied descriptions."""

import re


_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def normalize_description(text: str) -> str:
    """Collapse runs of three or more newlines into a single empty line.

    Single and double newlines are preserved, as is any other whitespace:

        "foo\\n\\n\\nbar"  -> "foo\\n\\nbar"
        "foo\\n\\n\\n   \\n\\nbar" -> "foo\\n\\n   \\n\\nbar"
    """
    return _EXCESS_NEWLINES.sub("\n\n", text)
