"""
Error taxonomy for target discovery.

Nothing here is fatal to a discovery run: every error is caught where it
originates, logged, recorded in :class:`~autodiscover.diagnostics.Diagnostics`
and replaced by a safe default.
"""

from typing import Optional


class DiscoveryError(Exception):
    """Base class for all discovery errors."""


class QueryFailure(DiscoveryError):
    """A cluster query failed in transport, in the API, or while parsing."""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        selector: Optional[str] = None,
        namespace: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.selector = selector
        self.namespace = namespace


class CommandFailure(QueryFailure):
    """A shell command run by the executor timed out or exited non-zero."""

    def __init__(self, message: str, command: str):
        super().__init__(message, kind="command")
        self.command = command


class AnnotationError(DiscoveryError):
    """An annotation could not be resolved to a list of strings."""

    def __init__(self, message: str, annotation: str):
        super().__init__(message)
        self.annotation = annotation


class AnnotationMissing(AnnotationError):
    pass


class AnnotationMalformed(AnnotationError):
    pass


class DecodeFailure(DiscoveryError):
    """Command output was not the expected JSON document."""


class ConfigLoadFailure(DiscoveryError):
    """A configuration or test-definition file could not be loaded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
