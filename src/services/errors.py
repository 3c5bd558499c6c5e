class ServiceError(Exception):
    pass


class InvalidURLError(ServiceError):
    pass


class PrivateOrUnavailableError(ServiceError):
    pass


class FetchFailedError(ServiceError):
    pass


class NoRecipeFoundError(ServiceError):
    def __init__(self, url: str):
        super().__init__(f"No recipe found at {url}")
        self.url = url


class NetworkTimeoutError(ServiceError):
    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(f"Network timeout after {timeout_seconds}s: {url}")
        self.url = url
        self.timeout_seconds = timeout_seconds
