class LexnavError(Exception):
    pass


class RecoverableFetchFailure(LexnavError):
    """Section retrieval failed (network, not found, bad payload); the excerpt is kept."""


class AmbiguousTableText(LexnavError):
    """Text passed the pipe threshold but could not be split into rows."""


class DocumentPayloadError(LexnavError):
    """Hierarchical document payload could not be validated."""
