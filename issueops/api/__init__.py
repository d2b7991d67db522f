"""HTTP API for issueops."""
