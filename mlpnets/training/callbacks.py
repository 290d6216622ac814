"""Observers for the training protocols."""

from __future__ import annotations

from typing import List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


class HistoryCapture:
    """Keep every reported ``(epoch, mse)`` pair in memory."""

    def __init__(self) -> None:
        self.history: List[Tuple[int, float]] = []
        self.early_stop_epoch: Optional[int] = None

    @property
    def last(self) -> Optional[float]:
        return self.history[-1][1] if self.history else None

    def on_epoch(self, epoch: int, mse: float) -> None:
        self.history.append((int(epoch), float(mse)))

    def on_early_stop(self, epoch: int) -> None:
        self.early_stop_epoch = int(epoch)


class LogProgress:
    """Log every ``every``-th epoch through structlog."""

    def __init__(self, every: int = 10, **context: object) -> None:
        self.every = max(1, int(every))
        self._log = logger.bind(**context)

    def on_epoch(self, epoch: int, mse: float) -> None:
        if epoch % self.every == 0:
            self._log.info("epoch_completed", epoch=epoch, mse=mse)

    def on_early_stop(self, epoch: int) -> None:
        self._log.info("early_stop_reported", epoch=epoch)


__all__ = ["HistoryCapture", "LogProgress"]
