from dataclasses import dataclass, field
from typing import Optional

from concurrency_bench import config

HTTP_VERSIONS = ("HTTP/1.1", "HTTP/2")


@dataclass(frozen=True)
class RequestDescriptor:
    """The one outbound GET every strategy repeats.

    Frozen so a single instance can be handed to concurrently running
    strategies without locking.
    """

    url: str
    http_version: str = config.HTTP_VERSION
    headers: tuple[tuple[str, str], ...] = field(default=config.HEADERS)
    timeout: float = config.TIMEOUT_SECONDS
    method: str = "GET"

    def __post_init__(self):
        if not self.url.startswith(("http://", "https://")):
            raise ValueError(f"unsupported url: {self.url!r}")
        if self.http_version not in HTTP_VERSIONS:
            raise ValueError(f"http_version must be one of {HTTP_VERSIONS}, got {self.http_version!r}")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.method != "GET":
            raise ValueError("only GET requests are benchmarked")

    @property
    def prefers_http2(self) -> bool:
        return self.http_version == "HTTP/2"

    def header_dict(self) -> dict[str, str]:
        return dict(self.headers)


def build_request(url: Optional[str] = None, timeout: Optional[float] = None,
                  http_version: Optional[str] = None, headers=None) -> RequestDescriptor:
    return RequestDescriptor(
        url=url or config.URL,
        http_version=http_version or config.HTTP_VERSION,
        headers=tuple(headers.items()) if isinstance(headers, dict) else tuple(headers or config.HEADERS),
        timeout=timeout if timeout is not None else config.TIMEOUT_SECONDS,
    )
