class BenchmarkError(Exception):
    pass


class TransportError(BenchmarkError):
    """A single outbound call could not complete (connection, timeout, status)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"GET {url} failed: {reason}")
        self.url = url
        self.reason = reason


class PersistenceError(BenchmarkError):
    """The result table could not be written to its destination."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot write {path}: {reason}")
        self.path = path
        self.reason = reason
