class BalancerError(Exception):
    pass


class NilNodeError(BalancerError):
    def __init__(self, message: str = "node is nil"):
        super().__init__(message)


class NodeUnavailableError(BalancerError):
    """Raised when a probe could not produce a trustworthy reading.

    Covers transport failures, HTTP error statuses and undecodable bodies;
    ``result`` keeps the specific outcome for callers that care.
    """

    def __init__(self, endpoint: str, result=None):
        self.endpoint = endpoint
        self.result = result
        detail = f" ({result.describe()})" if result is not None else ""
        super().__init__(f"node not available: {endpoint}{detail}")
