import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple


class Stopwatch:
    """Accumulates wall-clock time per named action (usually a rule name)."""

    def __init__(self) -> None:
        self.totals: Dict[str, float] = {}
        self.counts: Dict[str, int] = {}
        self._running: Optional[Tuple[str, float]] = None

    def start(self, name: str) -> None:
        self.stop()
        self._running = (name, time.perf_counter())

    def stop(self) -> None:
        if self._running is None:
            return
        name, started = self._running
        self._running = None
        self.totals[name] = self.totals.get(name, 0.0) + (time.perf_counter() - started)
        self.counts[name] = self.counts.get(name, 0) + 1

    @contextmanager
    def timed(self, name: str) -> Iterator[None]:
        self.start(name)
        try:
            yield
        finally:
            self.stop()

    def results(self) -> List[Tuple[str, float, int]]:
        """(name, seconds, calls), slowest first."""
        rows = [(name, total, self.counts[name]) for name, total in self.totals.items()]
        return sorted(rows, key=lambda x: x[1], reverse=True)

    def print_results(self) -> None:
        print("\n" + "=" * 78)
        print(f"{'RULES SORTED BY ELAPSED TIME':^78}")
        print("=" * 78)
        print(f"    {'Rule':<50} | {'Calls':>6} | {'Duration':>10}")
        print(f"    {'-'*50}-+-{'-'*6}-+-{'-'*10}")
        for name, elapsed, calls in self.results():
            print(f"    {name:<50} | {calls:>6} | {elapsed:>9.3f}s")
        print("=" * 78 + "\n")
