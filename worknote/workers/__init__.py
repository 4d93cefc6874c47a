"""Background workers."""

from worknote.workers.retry_sweeper import RetrySweeper, SweepResult

__all__ = ["RetrySweeper", "SweepResult"]
