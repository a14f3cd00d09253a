"""Metric sinks receiving ``on_epoch(epoch, metrics)`` callbacks."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .artifacts import git_sha


def _numeric(metrics: Mapping[str, object]) -> Dict[str, float]:
    return {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}


class _FileSink:
    """Owns one output file, emptied when the sink is created."""

    def __init__(self, path: str | Path, split: str = "train") -> None:
        self.path = Path(path)
        self.split = split
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.records = 0

    def _row(self, epoch: int, metrics: Mapping[str, object]) -> Dict[str, object]:
        row: Dict[str, object] = {"epoch": int(epoch), "split": self.split}
        row.update(_numeric(metrics))
        return row


class JsonlSink(_FileSink):
    """One JSON object per line, tagged with the seed and git SHA."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        super().__init__(path, split)
        self.seed = seed
        self.sha = sha or git_sha()

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record = self._row(epoch, metrics)
        record.update({"seed": self.seed, "sha": self.sha})
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")
        self.records += 1

    __call__ = on_epoch


class CsvSink(_FileSink):
    """CSV rows with sorted columns; the header comes from the first row."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        super().__init__(path, split)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row = self._row(epoch, metrics)
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=sorted(row))
            if self.records == 0:
                writer.writeheader()
            writer.writerow(row)
        self.records += 1

    __call__ = on_epoch


class MetricsCapture:
    """Keep epoch metrics in memory."""

    def __init__(self) -> None:
        self.history: List[Tuple[int, Dict[str, float]]] = []

    @property
    def last(self) -> Mapping[str, float]:
        return self.history[-1][1] if self.history else {}

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((int(epoch), _numeric(metrics)))


__all__ = ["JsonlSink", "CsvSink", "MetricsCapture"]
