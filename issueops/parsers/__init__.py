"""Chat command parsers."""

from issueops.parsers.command import (
    CommandPhrases,
    classify,
    parse_command,
    strip_phrase,
    trigger_check,
)

__all__ = [
    "CommandPhrases",
    "classify",
    "parse_command",
    "strip_phrase",
    "trigger_check",
]
