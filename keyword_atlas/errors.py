"""Error taxonomy for catalog loading and graph display."""

from __future__ import annotations


class KeywordAtlasError(Exception):
    """Base class for errors surfaced to the session layer."""


class SchemaError(KeywordAtlasError):
    """The loaded document lacks the expected records array."""


class FetchError(KeywordAtlasError):
    """The catalog could not be retrieved or parsed as JSON."""


class LoadInProgressError(KeywordAtlasError):
    """A second load was started before the first one finished."""


class EmptyInputWarning(UserWarning):
    """The catalog held no records or no keywords; not fatal."""
