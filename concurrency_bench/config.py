import logging
import os

# Target
URL = os.getenv("BENCH_URL", "https://jsonplaceholder.typicode.com/users")
TIMEOUT_SECONDS = float(os.getenv("BENCH_TIMEOUT", "10"))
HTTP_VERSION = "HTTP/2"
HEADERS = (("Accept", "application/json"),)

# Strategies
POOL_SIZE = int(os.getenv("BENCH_POOL_SIZE", "10"))

# Runs
DEFAULT_CALL_COUNTS = (10, 30, 50, 70, 90)
DEMO_CALLS = 10

# Output
OUTPUT_FILE = os.getenv("BENCH_OUTPUT", "benchmark_results.csv")
CALLS_HEADER = "Number of Calls"
DIVIDER = "=" * 89

# Logging
LOG_LEVEL = os.getenv("BENCH_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level=None):
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
