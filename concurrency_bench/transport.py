import httpx
import requests
from requests.adapters import HTTPAdapter

from concurrency_bench.errors import TransportError
from concurrency_bench.request import RequestDescriptor


def make_session(pool_size: int = 1) -> requests.Session:
    # requests has no HTTP/2 support; the preference falls back to HTTP/1.1 here
    s = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=0)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    return s


def fetch(session: requests.Session, request: RequestDescriptor) -> int:
    """Issue one GET and return the response body length in bytes."""
    try:
        r = session.get(request.url, headers=request.header_dict(), timeout=request.timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise TransportError(request.url, f"{type(e).__name__}: {e}") from e
    return len(r.content)


def make_async_client(request: RequestDescriptor, unbounded: bool = False) -> httpx.AsyncClient:
    limits = httpx.Limits(max_connections=None, max_keepalive_connections=None) if unbounded else httpx.Limits()
    return httpx.AsyncClient(
        http2=request.prefers_http2,
        headers=request.header_dict(),
        timeout=request.timeout,
        limits=limits,
    )


async def afetch(client: httpx.AsyncClient, request: RequestDescriptor) -> int:
    try:
        r = await client.get(request.url)
        r.raise_for_status()
    except httpx.HTTPError as e:
        raise TransportError(request.url, f"{type(e).__name__}: {e}") from e
    return len(r.content)
