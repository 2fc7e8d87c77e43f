class AnalysisError(Exception):
    """Base exception for the credibility pipeline."""
    pass

class NetworkError(AnalysisError):
    """
    Raised when a page could not be retrieved.
    `kind` is a short machine-readable reason (e.g. "connection", "request").
    """
    def __init__(self, url, message, kind="request", status=None):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.kind = kind
        self.status = status

class FetchError(NetworkError):
    """Raised on timeouts, non-2xx responses and non-HTML payloads."""
    pass

class ParseError(AnalysisError):
    """Raised when a single JSON-LD block cannot be decoded."""
    def __init__(self, index, message, snippet=""):
        super().__init__(f"JSON-LD block {index}: {message}")
        self.index = index
        self.snippet = snippet
