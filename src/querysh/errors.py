class QueryshError(Exception):
    """Base class for all errors raised by querysh."""


class ConfigurationError(QueryshError):
    """Conflicting or unusable startup configuration. Fatal before the loop starts."""


class StatementParseError(QueryshError):
    """A statement could not be parsed into a structured form.

    Never fatal: the statement is forwarded to the executor as opaque text.
    """


class ExecutionFailure(QueryshError):
    """The backend rejected or failed on a single statement."""
