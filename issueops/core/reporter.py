"""User-facing status messages."""

from textwrap import dedent

from issueops.models.run import FormattedMessage

SUCCESS_ICON = "✅"
FAILURE_ICON = "❌"
UNKNOWN_ICON = "⚠️"


def _unescape(message: str) -> str:
    """Turn literal ``\\n`` and ``\\t`` sequences into real whitespace."""
    return message.replace("\\n", "\n").replace("\\t", "\t")


def _strip_scheme(url: str) -> str:
    return url.replace("https://", "", 1).replace("http://", "", 1)


def format_deployment_result(
    actor: str,
    status: str,
    noop: bool,
    ref: str,
    environment: str | None,
    custom_message: str | None = None,
    environment_url: str | None = None,
    environment_url_in_comment: bool = True,
) -> FormattedMessage:
    """Build the final comment for a finished deployment.

    Unrecognized statuses produce a cautionary message rather than an error.
    """
    deploy_type = " **noop** " if noop else " "

    if status == "success":
        message = (
            f"**{actor}** successfully{deploy_type}deployed branch "
            f"`{ref}` to **{environment}**"
        )
        icon = SUCCESS_ICON
    elif status == "failure":
        message = (
            f"**{actor}** had a failure when{deploy_type}deploying branch "
            f"`{ref}` to **{environment}**"
        )
        icon = FAILURE_ICON
    else:
        message = f"Warning:{deploy_type}deployment status is unknown, please use caution"
        icon = UNKNOWN_ICON

    body = f"### Deployment Results {icon}\n\n{message}"
    if custom_message:
        body += (
            "\n\n<details><summary>Show Results</summary>\n\n"
            f"{_unescape(custom_message)}\n\n</details>"
        )

    if (
        environment_url
        and environment_url.strip()
        and status == "success"
        and not noop
        and environment_url_in_comment
    ):
        body += (
            f"\n\n> **Environment URL:** "
            f"[{_strip_scheme(environment_url)}]({environment_url})"
        )

    return FormattedMessage(body=body, success=status == "success")


def format_triggered_comment(
    actor: str,
    noop: bool,
    environment: str,
    ref: str,
    log_url: str | None = None,
) -> str:
    """Comment posted when a deployment starts."""
    deployment_type = "noop" if noop else "branch"
    body = (
        "### Deployment Triggered 🚀\n\n"
        f"__{actor}__, started a __{deployment_type}__ deployment to __{environment}__\n\n"
    )
    if log_url:
        body += f"You can watch the progress [here]({log_url}) 🔗\n\n"
    body += f"> __Branch__: `{ref}`"
    return body


def format_missing_environment(allowed_environments: list[str]) -> str:
    targets = ",".join(allowed_environments)
    return dedent(
        f"""\
        ### {UNKNOWN_ICON} Cannot proceed with deployment

        No matching environment target found. Please check your command and try again.

        > The following environment targets are available: `{targets}`"""
    )


def format_merge_required(platform_message: str) -> str:
    return "\n".join(
        [
            f"### {UNKNOWN_ICON} Deployment Warning",
            "",
            f"- Message: {platform_message}",
            "- Note: If you have required CI checks, you may need to manually push a commit to re-run them",
            "",
            "> Deployment will not continue. Please try again once this branch is up-to-date with the base branch",
        ]
    )


def format_help(
    trigger: str,
    noop_trigger: str,
    stable_branch: str,
    environment: str,
    environment_targets: list[str],
    help_trigger: str,
) -> str:
    """Short command reference posted in reply to the help trigger."""
    targets = ", ".join(f"`{target}`" for target in environment_targets) or "none"
    return dedent(
        f"""\
        ### 📚 Branch Deployment Help

        - `{trigger}` - deploy this branch to the default environment (`{environment}`)
        - `{trigger} to <environment>` - deploy this branch to a specific environment
        - `{trigger} {noop_trigger}` - run a **noop** deployment (no deployment is created)
        - `{trigger} {stable_branch}` - deploy the stable branch (`{stable_branch}`), e.g. for a rollback
        - `{help_trigger}` - show this message

        > Available environments: {targets}"""
    )
