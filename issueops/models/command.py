"""Command data models."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel


class CommandKind(str, Enum):
    """Which command a comment activates."""

    DEPLOY = "deploy"
    HELP = "help"
    NONE = "none"


class Command(BaseModel):
    """A classified comment."""

    kind: CommandKind = CommandKind.NONE
    is_noop: bool = False
    raw_body: str = ""

    @property
    def triggered(self) -> bool:
        return self.kind != CommandKind.NONE


class Modifier(str, Enum):
    """Optional word following the trigger phrase."""

    NONE = "none"
    NOOP = "noop"
    STABLE = "stable"


@dataclass(frozen=True)
class BareCommand:
    """Trigger (plus modifier) with no explicit environment."""

    modifier: Modifier


@dataclass(frozen=True)
class TargetedCommand:
    """Trigger (plus modifier) followed by an environment token."""

    modifier: Modifier
    target: str
    uses_to: bool = False


@dataclass(frozen=True)
class UnrecognizedCommand:
    """Body does not follow the command grammar."""

    body: str


ParsedCommand = BareCommand | TargetedCommand | UnrecognizedCommand
