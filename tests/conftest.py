import socket
import threading
import time

import pytest
import requests
from werkzeug.serving import make_server

from concurrency_bench import target_app
from concurrency_bench.request import RequestDescriptor


@pytest.fixture(scope="session")
def base_url():
    server = make_server("127.0.0.1", 0, target_app.app, threaded=True)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    yield f"http://127.0.0.1:{server.server_port}"
    server.shutdown()
    t.join(timeout=5)


def wait_idle(base_url, timeout=10.0):
    # timed-out clients leave /slow handlers sleeping on the server
    deadline = time.monotonic() + timeout
    while requests.get(base_url + "/inflight", timeout=5).json()["current"] and time.monotonic() < deadline:
        time.sleep(0.05)


@pytest.fixture(autouse=True)
def reset_counter(request):
    if "base_url" in request.fixturenames:
        base_url = request.getfixturevalue("base_url")
        wait_idle(base_url)
        requests.post(base_url + "/reset", timeout=5).raise_for_status()
    yield


@pytest.fixture
def hits(base_url):
    def _hits() -> int:
        return requests.get(base_url + "/count", timeout=5).json()["value"]
    return _hits


@pytest.fixture
def peak_inflight(base_url):
    def _peak() -> int:
        return requests.get(base_url + "/inflight", timeout=5).json()["peak"]
    return _peak


@pytest.fixture
def users_request(base_url):
    return RequestDescriptor(url=base_url + "/users", timeout=5)


@pytest.fixture
def fail_request(base_url):
    return RequestDescriptor(url=base_url + "/fail", timeout=5)


@pytest.fixture
def slow_request(base_url):
    def _slow(ms: int, timeout: float = 5) -> RequestDescriptor:
        return RequestDescriptor(url=f"{base_url}/slow?ms={ms}", timeout=timeout)
    return _slow


@pytest.fixture
def dead_request():
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return RequestDescriptor(url=f"http://127.0.0.1:{port}/users", timeout=2)
