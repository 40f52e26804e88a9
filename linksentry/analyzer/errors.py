"""Errors surfaced by the risk evaluation engine."""


class LinkSentryError(Exception):
    """Base exception for evaluation errors."""

    pass


class InvalidRequestError(LinkSentryError):
    """The evaluation request is missing a URL or the URL is not absolute."""

    def __init__(self, message: str = "url is required"):
        self.message = message
        super().__init__(message)


class PersistenceError(LinkSentryError):
    """A verdict was computed but could not be recorded."""

    def __init__(self, message: str, verdict=None):
        self.message = message
        self.verdict = verdict
        super().__init__(message)
