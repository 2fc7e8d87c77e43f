"""
Metrics tracking and terminal summary formatting for analysis runs.
Provides clean tabular output of per-URL outcomes.
"""

import time
from datetime import timedelta
from threading import Lock

from tabulate import tabulate

from crawler.models import AnalysisOutcome, OutcomeStatus


class AnalysisMetrics:
    """
    Thread-safe tracker for per-URL analysis outcomes.
    Workers call record(); the CLI renders format_summary() once the run ends.
    """

    def __init__(self):
        self.lock = Lock()
        self.start_time = time.time()
        self.records = []
        self.counts = {status.value: 0 for status in OutcomeStatus}
        self.total_fetch_ms = 0

    def record(self, outcome: AnalysisOutcome):
        with self.lock:
            self.records.append(outcome)
            self.counts[outcome.status.value] += 1
            self.total_fetch_ms += outcome.fetch_duration_ms

    def snapshot(self):
        with self.lock:
            return list(self.records), dict(self.counts)

    def format_summary(self):
        records, counts = self.snapshot()
        elapsed = time.time() - self.start_time
        total = len(records)

        rows = []
        for outcome in records:
            if outcome.score is not None:
                score = f"{outcome.score.overall:.1f}/{outcome.score.max_score:.0f}"
                status = outcome.score.status.value
            else:
                score, status = "-", "-"
            rows.append([
                outcome.url[:70],
                outcome.status.value,
                score,
                status,
                f"{outcome.fetch_duration_ms}ms",
                (outcome.error or "")[:50],
            ])

        lines = [
            tabulate(rows, headers=["URL", "Outcome", "Score", "Status", "Fetch", "Error"], tablefmt="grid"),
            "",
            f"Total URLs:  {total}",
            f"Analyzed:    {counts[OutcomeStatus.OK.value]} "
            f"({counts[OutcomeStatus.OK.value] / max(1, total) * 100:.1f}%)",
            f"Skipped:     {counts[OutcomeStatus.SKIPPED.value]}",
            f"Avg fetch:   {self.total_fetch_ms / max(1, total):.0f}ms",
            f"Duration:    {timedelta(seconds=int(elapsed))}",
        ]
        return "\n".join(lines)
