"""
Error kinds raised by the sync core. All of them abort the current feed's run.
"""


class RelayError(Exception):
    """Base class for failures of a single feed's sync run."""


class FetchError(RelayError):
    """Network or HTTP-layer failure while retrieving a feed or feed list."""


class ParseError(RelayError):
    """Malformed feed, missing build date, or a date that does not parse."""


class StoreError(RelayError):
    """Read or write failure in the key/value store."""


class PublishError(RelayError):
    """The posting API rejected a status or could not be reached."""
