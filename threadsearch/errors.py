class SearchError(Exception):
    """Base class for errors raised by the search pipeline."""


class SearchFailedError(SearchError):
    """A search could not produce an answer. This is what callers should catch."""


class PermissionLookupError(SearchFailedError):
    """The message store could not resolve which candidates the user may see."""


class SynthesisError(SearchFailedError):
    """The final answer could not be generated from the evidence."""
