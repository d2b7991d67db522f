"""Platform clients for issueops."""

from issueops.services.github import GitHubClient, verify_signature
from issueops.services.platform import PlatformClient, PlatformFactory

__all__ = [
    "GitHubClient",
    "PlatformClient",
    "PlatformFactory",
    "verify_signature",
]
