"""Exposed interface for UI/CLI collaborators."""

from jira_pipeline.transport.continuation import Continuation, run_with_continuation

from .client import JiraApiClient

__all__ = [
    "Continuation",
    "JiraApiClient",
    "run_with_continuation",
]
