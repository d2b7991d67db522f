"""Unit tests for chat command parsing."""

import pytest

from issueops.core.exceptions import MultipleCommandsError
from issueops.models.command import (
    BareCommand,
    CommandKind,
    Modifier,
    TargetedCommand,
    UnrecognizedCommand,
)
from issueops.parsers.command import (
    CommandPhrases,
    classify,
    parse_command,
    strip_phrase,
    trigger_check,
)

PHRASES = CommandPhrases(trigger=".deploy", noop_trigger="noop", stable_branch="main")


class TestTriggerCheck:
    """Tests for trigger_check."""

    def test_prefix_only_matches_start(self):
        assert trigger_check(True, ".deploy to staging", ".deploy") is True

    def test_prefix_only_rejects_trigger_later_in_body(self):
        assert trigger_check(True, "please .deploy", ".deploy") is False

    def test_prefix_only_ignores_surrounding_whitespace(self):
        assert trigger_check(True, "   .deploy  ", ".deploy") is True

    def test_anywhere_matches_standalone_token(self):
        assert trigger_check(False, "could you .deploy this", ".deploy") is True

    def test_anywhere_rejects_partial_word(self):
        assert trigger_check(False, "see file.deployment", ".deploy") is False

    @pytest.mark.parametrize("prefix_only", [True, False])
    def test_missing_trigger(self, prefix_only: bool):
        assert trigger_check(prefix_only, "looks good to me", ".deploy") is False


class TestClassify:
    """Tests for classify."""

    def test_deploy(self):
        command = classify(".deploy", ".deploy", ".help")
        assert command.kind == CommandKind.DEPLOY
        assert command.is_noop is False
        assert command.triggered

    def test_noop_deploy(self):
        command = classify(".deploy noop to staging", ".deploy", ".help", "noop")
        assert command.kind == CommandKind.DEPLOY
        assert command.is_noop is True

    def test_help(self):
        command = classify(".help", ".deploy", ".help")
        assert command.kind == CommandKind.HELP

    def test_no_command(self):
        command = classify("LGTM", ".deploy", ".help")
        assert command.kind == CommandKind.NONE
        assert not command.triggered
        assert command.raw_body == "LGTM"

    def test_multiple_commands_raise(self):
        with pytest.raises(MultipleCommandsError) as exc_info:
            classify(".deploy .help", ".deploy", ".help", prefix_only=False)

        assert "multiple commands" in exc_info.value.message

    def test_prefix_only_picks_leading_command(self):
        command = classify(".deploy .help", ".deploy", ".help", prefix_only=True)
        assert command.kind == CommandKind.DEPLOY


class TestParseCommand:
    """Tests for the command grammar."""

    def test_bare(self):
        assert parse_command(".deploy", PHRASES) == BareCommand(modifier=Modifier.NONE)

    def test_bare_noop(self):
        assert parse_command(".deploy noop", PHRASES) == BareCommand(modifier=Modifier.NOOP)

    def test_bare_stable(self):
        assert parse_command(".deploy main", PHRASES) == BareCommand(modifier=Modifier.STABLE)

    def test_targeted_with_to(self):
        parsed = parse_command(".deploy to staging", PHRASES)
        assert parsed == TargetedCommand(Modifier.NONE, "staging", uses_to=True)

    def test_targeted_noop(self):
        parsed = parse_command(".deploy noop staging", PHRASES)
        assert parsed == TargetedCommand(Modifier.NOOP, "staging")

    def test_unrecognized(self):
        assert isinstance(parse_command("ship it", PHRASES), UnrecognizedCommand)

    def test_trigger_must_be_whole_word(self):
        assert isinstance(parse_command(".deploystaging", PHRASES), UnrecognizedCommand)


class TestStripPhrase:
    """Tests for strip_phrase."""

    def test_strips_leading_phrase(self):
        assert strip_phrase(".deploy   to prod ", ".deploy") == "to prod"

    def test_exact_phrase_leaves_empty_remainder(self):
        assert strip_phrase(".deploy", ".deploy") == ""

    def test_phrase_not_at_start(self):
        assert strip_phrase("hey .deploy", ".deploy") is None
