import logging

from concurrency_bench.errors import PersistenceError
from concurrency_bench.matrix import ResultTable

logger = logging.getLogger(__name__)

FIRST_WIDTH = 15
COLUMN_WIDTH = 25
RULE = "=" * 107


def render(table: ResultTable) -> str:
    widths = [FIRST_WIDTH] + [COLUMN_WIDTH] * (len(table.headers) - 1)

    def line(cells):
        return " ".join(f"{str(c):<{w}}" for c, w in zip(cells, widths)).rstrip()

    out = [line(table.headers), RULE]
    out.extend(line(row) for row in table.rows)
    return "\n".join(out)


def to_lines(table: ResultTable) -> list[str]:
    return [", ".join(str(c) for c in line) for line in (table.headers, *table.rows)]


def write_csv(table: ResultTable, path: str) -> None:
    try:
        with open(path, "w", newline="") as f:
            for line in to_lines(table):
                f.write(line + "\n")
    except OSError as e:
        raise PersistenceError(path, str(e)) from e


def persist(table: ResultTable, path: str) -> bool:
    """Write ``table`` to ``path``; a failure is logged, never raised."""
    try:
        write_csv(table, path)
    except PersistenceError as e:
        logger.error("Error writing results to CSV file: %s", e)
        return False
    logger.info("Results saved to %s", path)
    return True
