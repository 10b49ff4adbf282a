import argparse
import logging

from concurrency_bench import config
from concurrency_bench.demo import run_demo
from concurrency_bench.errors import TransportError
from concurrency_bench.matrix import run_matrix
from concurrency_bench.report import persist, render
from concurrency_bench.request import HTTP_VERSIONS, build_request
from concurrency_bench.strategies import default_strategies

logger = logging.getLogger(__name__)


def call_count_arg(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return n


def pool_size_arg(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"pool size must be at least 1, got {value}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="concurrency-bench",
                                description="Time repeated HTTP GETs under different concurrency strategies.")
    p.add_argument("command", nargs="?", default="matrix", choices=["matrix", "demo", "serve"])
    p.add_argument("--url", default=config.URL)
    p.add_argument("--timeout", type=float, default=config.TIMEOUT_SECONDS)
    p.add_argument("--http-version", default=config.HTTP_VERSION, choices=HTTP_VERSIONS)
    p.add_argument("--calls", type=call_count_arg, nargs="+",
                   help=f"call counts (matrix default {list(config.DEFAULT_CALL_COUNTS)}, demo default {config.DEMO_CALLS})")
    p.add_argument("--pool-size", type=pool_size_arg, default=config.POOL_SIZE)
    p.add_argument("--output", default=config.OUTPUT_FILE)
    p.add_argument("--host", default="127.0.0.1", help="serve: bind address")
    p.add_argument("--port", type=int, default=8080, help="serve: bind port")
    p.add_argument("--log-level", default=config.LOG_LEVEL)
    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "demo" and args.calls and len(args.calls) > 1:
        parser.error("demo takes a single --calls value")
    config.setup_logging(args.log_level.upper())

    if args.command == "serve":
        from concurrency_bench.target_app import serve
        print(f"[start] serving target on http://{args.host}:{args.port}/users", flush=True)
        serve(args.host, args.port)
        return 0

    request = build_request(url=args.url, timeout=args.timeout, http_version=args.http_version)
    strategies = default_strategies(args.pool_size)

    try:
        if args.command == "demo":
            calls = args.calls[0] if args.calls else config.DEMO_CALLS
            run_demo(request, calls, strategies)
            return 0

        calls = args.calls or list(config.DEFAULT_CALL_COUNTS)
        print(f"[start] url={request.url} calls={calls} strategies={[s.key for s in strategies]}", flush=True)
        table = run_matrix(
            request, calls, strategies,
            on_result=lambda r: print(f"[done] strategy={r.strategy} calls={r.call_count} ms={r.elapsed_ms}", flush=True),
        )
    except TransportError as e:
        logger.error("Benchmark aborted: %s", e)
        raise

    print(render(table), flush=True)
    persist(table, args.output)
    return 0


if __name__ == "__main__":
    main()
