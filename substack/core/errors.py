# substack/core/errors.py


class SubStackError(Exception):
    """Base class for every error raised by the substack core."""


class InvalidAmount(SubStackError, ValueError):
    """A price that is not a non-negative integer."""

    def __init__(self, value):
        super().__init__(f"Invalid amount: {value!r}")
        self.value = value


class RemoteError(SubStackError):
    """The persistence backend failed or was unreachable."""


class FeedFetchError(SubStackError):
    """A feed URL could not be downloaded."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class FeedParseError(SubStackError):
    """A feed body was not well-formed RSS or Atom."""
