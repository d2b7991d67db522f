"""Environment target resolution.

Works out which environment a deploy comment targets and which URL (if any)
the environment is published at.
"""

import re
from typing import Callable

from issueops.models.deployment import EnvironmentTarget
from issueops.parsers.command import CommandPhrases, strip_phrase
from issueops.utils.logging import get_logger

logger = get_logger(__name__)

URL_SCHEME = re.compile(r"^https?://")
DISABLED_URL = "disabled"

TargetRule = Callable[[str, str, CommandPhrases], bool]
DefaultRule = Callable[[str, CommandPhrases], bool]


def _remainder_equals(body: str, phrase: str, expected: str) -> bool:
    remainder = strip_phrase(body, phrase)
    return remainder is not None and remainder == expected


def _branch_target(body: str, target: str, p: CommandPhrases) -> bool:
    return _remainder_equals(body, p.trigger, target)


def _noop_target(body: str, target: str, p: CommandPhrases) -> bool:
    return _remainder_equals(body, p.noop_phrase, target)


def _branch_to_target(body: str, target: str, p: CommandPhrases) -> bool:
    return _remainder_equals(body, p.trigger, f"to {target}")


def _noop_to_target(body: str, target: str, p: CommandPhrases) -> bool:
    return _remainder_equals(body, p.noop_phrase, f"to {target}")


def _stable_to_target(body: str, target: str, p: CommandPhrases) -> bool:
    return _remainder_equals(body, p.stable_phrase, f"to {target}")


def _stable_target(body: str, target: str, p: CommandPhrases) -> bool:
    return _remainder_equals(body, p.stable_phrase, target)


# Evaluated in this order for every candidate environment. The stable branch
# "to" form is checked before its bare form.
TARGET_RULES: list[tuple[str, TargetRule]] = [
    ("branch deploy", _branch_target),
    ("noop trigger", _noop_target),
    ("branch deploy (with 'to')", _branch_to_target),
    ("noop trigger (with 'to')", _noop_to_target),
    ("stable branch deploy (with 'to')", _stable_to_target),
    ("stable branch deploy", _stable_target),
]

# A bare command with no environment token resolves to the default environment
DEFAULT_RULES: list[tuple[str, DefaultRule]] = [
    ("branch deployment", lambda body, p: body == p.trigger),
    ("noop trigger", lambda body, p: body == p.noop_phrase),
    ("stable branch deployment", lambda body, p: body == p.stable_phrase),
]


def _match_default(body: str, phrases: CommandPhrases) -> str | None:
    for label, rule in DEFAULT_RULES:
        if rule(body, phrases):
            return label
    return None


def resolve_environment(
    body: str,
    trigger: str,
    noop_trigger: str,
    stable_branch: str,
    default_environment: str,
    allowed_environments: list[str],
) -> str | None:
    """Resolve the environment a comment targets.

    Candidates are checked in configured order and the first match wins.

    Returns:
        The environment name, or None when nothing matches
    """
    body = body.strip()
    phrases = CommandPhrases(trigger, noop_trigger, stable_branch)

    for target in allowed_environments:
        for label, rule in TARGET_RULES:
            if rule(body, target, phrases):
                logger.debug(
                    "environment.target_found",
                    form=label,
                    environment=target,
                )
                return target

        label = _match_default(body, phrases)
        if label:
            logger.debug("environment.default_used", form=label)
            return default_environment

    if not allowed_environments and _match_default(body, phrases):
        return default_environment

    return None


def find_environment_url(environment: str, environment_urls: str | None) -> str | None:
    """Look up the URL configured for ``environment``.

    ``environment_urls`` has the form ``"<env1>|<url1>,<env2>|<url2>"``.
    """
    if environment_urls is None or not environment_urls.strip():
        return None

    for pair in environment_urls.strip().split(","):
        name, _, url = pair.strip().partition("|")
        if name != environment:
            continue

        if url == DISABLED_URL:
            logger.info("environment.url_disabled", environment=environment)
            return None

        if not URL_SCHEME.match(url):
            logger.warning(
                "environment.url_invalid_scheme",
                environment=environment,
                url=url,
            )
            continue

        logger.info("environment.url_detected", environment=environment, url=url)
        return url

    logger.warning(
        "environment.url_not_found",
        environment=environment,
        reason="no valid environment URL configured - check the environment_urls input",
    )
    return None


def environment_targets(
    body: str,
    trigger: str,
    noop_trigger: str,
    stable_branch: str,
    default_environment: str,
    allowed_environments: list[str],
    environment_urls: str | None = None,
) -> EnvironmentTarget | None:
    """Resolve both the environment and its URL for a comment."""
    name = resolve_environment(
        body,
        trigger,
        noop_trigger,
        stable_branch,
        default_environment,
        allowed_environments,
    )
    if name is None:
        logger.warning(
            "environment.not_found",
            available=",".join(allowed_environments),
        )
        return None

    return EnvironmentTarget(
        name=name,
        url=find_environment_url(name, environment_urls),
    )
