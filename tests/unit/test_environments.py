"""Unit tests for environment resolution."""

import pytest

from issueops.core.environments import (
    environment_targets,
    find_environment_url,
    resolve_environment,
)

TARGETS = ["production", "development", "staging"]


def resolve(body: str, targets: list[str] = TARGETS) -> str | None:
    return resolve_environment(body, ".deploy", "noop", "main", "production", targets)


class TestResolveEnvironment:
    """Tests for resolve_environment."""

    @pytest.mark.parametrize(
        "body,expected",
        [
            (".deploy", "production"),
            (".deploy noop", "production"),
            (".deploy main", "production"),
            (".deploy staging", "staging"),
            (".deploy to staging", "staging"),
            (".deploy noop development", "development"),
            (".deploy noop to development", "development"),
            (".deploy main to staging", "staging"),
            (".deploy main staging", "staging"),
        ],
    )
    def test_resolves(self, body: str, expected: str):
        assert resolve(body) == expected

    def test_unknown_environment(self):
        assert resolve(".deploy to qa") is None

    def test_partial_environment_name_does_not_match(self):
        assert resolve(".deploy stag") is None

    def test_target_order_does_not_hide_later_match(self):
        assert resolve(".deploy to production", ["staging", "production"]) == "production"

    def test_default_applies_on_first_candidate(self):
        assert resolve(".deploy noop", ["staging", "production"]) == "production"

    def test_default_resolves_with_empty_target_list(self):
        assert resolve(".deploy", []) == "production"

    def test_empty_target_list_rejects_explicit_target(self):
        assert resolve(".deploy to staging", []) is None

    def test_surrounding_whitespace_is_ignored(self):
        assert resolve("  .deploy to staging  ") == "staging"

    def test_custom_default_environment(self):
        result = resolve_environment(
            ".deploy", ".deploy", "noop", "main", "staging", TARGETS
        )
        assert result == "staging"


class TestFindEnvironmentUrl:
    """Tests for find_environment_url."""

    def test_exact_match(self):
        urls = "production|https://example.com,staging|https://staging.example.com"
        assert find_environment_url("staging", urls) == "https://staging.example.com"

    def test_blank_input(self):
        assert find_environment_url("production", "") is None
        assert find_environment_url("production", None) is None

    def test_disabled(self):
        assert find_environment_url("staging", "staging|disabled") is None

    def test_invalid_scheme_is_skipped(self):
        urls = "production|ftp://example.com,production|http://example.com"
        assert find_environment_url("production", urls) == "http://example.com"

    def test_only_invalid_scheme(self):
        assert find_environment_url("production", "production|example.com") is None

    def test_no_entry_for_environment(self):
        assert find_environment_url("development", "production|https://example.com") is None

    def test_name_must_match_exactly(self):
        assert find_environment_url("prod", "production|https://example.com") is None


class TestEnvironmentTargets:
    """Tests for the combined lookup."""

    def test_resolves_name_and_url(self):
        target = environment_targets(
            ".deploy to production",
            ".deploy",
            "noop",
            "main",
            "production",
            TARGETS,
            "production|https://example.com",
        )

        assert target is not None
        assert target.name == "production"
        assert target.url == "https://example.com"

    def test_disabled_url(self):
        target = environment_targets(
            ".deploy to staging",
            ".deploy",
            "noop",
            "main",
            "production",
            ["production", "staging"],
            "staging|disabled",
        )

        assert target is not None
        assert target.name == "staging"
        assert target.url is None

    def test_no_match(self):
        target = environment_targets(
            ".deploy to qa", ".deploy", "noop", "main", "production", TARGETS
        )
        assert target is None
