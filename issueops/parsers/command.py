"""Chat command parsing.

Grammar of a deploy command::

    command  := trigger (" " modifier)? (" " ("to ")? target)?
    modifier := noop_trigger | stable_branch

``classify`` decides which command (if any) a comment activates and
``parse_command`` turns a deploy comment into a tagged outcome.
"""

import re
from dataclasses import dataclass

from issueops.core.exceptions import MultipleCommandsError
from issueops.models.command import (
    BareCommand,
    Command,
    CommandKind,
    Modifier,
    ParsedCommand,
    TargetedCommand,
    UnrecognizedCommand,
)


@dataclass(frozen=True)
class CommandPhrases:
    """The configured words that make up a deploy command."""

    trigger: str
    noop_trigger: str
    stable_branch: str

    @property
    def noop_phrase(self) -> str:
        return f"{self.trigger} {self.noop_trigger}"

    @property
    def stable_phrase(self) -> str:
        return f"{self.trigger} {self.stable_branch}"


def strip_phrase(body: str, phrase: str) -> str | None:
    """Remove a leading ``phrase`` from ``body``.

    Returns the trimmed remainder, or None when ``body`` does not start with
    ``phrase`` as a whole word.
    """
    body = body.strip()
    if not phrase or not body.startswith(phrase):
        return None
    remainder = body[len(phrase):]
    if remainder and not remainder[0].isspace():
        return None
    return remainder.strip()


def trigger_check(prefix_only: bool, body: str, trigger: str) -> bool:
    """Check whether ``body`` activates ``trigger``."""
    body = body.strip()
    if not trigger:
        return False
    if prefix_only:
        return body.startswith(trigger)
    return re.search(rf"(?:^|\s){re.escape(trigger)}(?:\s|$)", body) is not None


def parse_command(body: str, phrases: CommandPhrases) -> ParsedCommand:
    """Parse a deploy comment into a bare, targeted or unrecognized command."""
    body = body.strip()
    rest = strip_phrase(body, phrases.trigger)
    if rest is None:
        return UnrecognizedCommand(body=body)

    modifier = Modifier.NONE
    for candidate, word in (
        (Modifier.NOOP, phrases.noop_trigger),
        (Modifier.STABLE, phrases.stable_branch),
    ):
        after = strip_phrase(rest, word)
        if after is not None:
            modifier = candidate
            rest = after
            break

    if not rest:
        return BareCommand(modifier=modifier)

    target = strip_phrase(rest, "to")
    if target:
        return TargetedCommand(modifier=modifier, target=target, uses_to=True)
    return TargetedCommand(modifier=modifier, target=rest)


def classify(
    body: str,
    trigger: str,
    help_trigger: str,
    noop_trigger: str = "noop",
    prefix_only: bool = True,
) -> Command:
    """Classify a comment body as a deploy, help or no command.

    Raises:
        MultipleCommandsError: If both the deploy and help triggers match
    """
    body = body.strip()
    is_deploy = trigger_check(prefix_only, body, trigger)
    is_help = trigger_check(prefix_only, body, help_trigger)

    if is_deploy and is_help:
        raise MultipleCommandsError([trigger, help_trigger])

    if is_help:
        return Command(kind=CommandKind.HELP, raw_body=body)

    if is_deploy:
        parsed = parse_command(
            body, CommandPhrases(trigger, noop_trigger, stable_branch="")
        )
        is_noop = (
            isinstance(parsed, (BareCommand, TargetedCommand))
            and parsed.modifier == Modifier.NOOP
        )
        return Command(kind=CommandKind.DEPLOY, is_noop=is_noop, raw_body=body)

    return Command(kind=CommandKind.NONE, raw_body=body)
