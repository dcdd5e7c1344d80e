"""Exception types raised by the reconciliation pipeline.

Matching ambiguity is never an exception; it is reported as discrepancies.
"""


class ReconcileError(Exception):
    """Base class for all reconciliation errors."""


class InputError(ReconcileError, ValueError):
    """Invalid user input such as an unknown chapter or an out-of-range year."""


class FetchError(ReconcileError):
    """The HTML source could not be fetched."""


class PageNotFoundError(FetchError):
    """The HTML source answered 404."""


class ExtractionError(ReconcileError):
    """The extractor failed or returned a payload of the wrong shape."""


class DataStoreError(ReconcileError):
    """A query against the results database failed."""
