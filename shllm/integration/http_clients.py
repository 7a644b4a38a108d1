import httpx


def make_http_client(timeout: float = 60.0, connect: float = 15.0) -> httpx.Client:
    """Shared HTTP transport for the model endpoint."""
    return httpx.Client(timeout=httpx.Timeout(timeout, connect=connect))
