"""Training driver: one ADAM step per epoch over a fixed batch."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Sequence

import numpy as np

from ..core import valueset
from ..core.activations import Activator
from ..core.network import Network
from ..core.types import Array, RunResult, Sample, as_samples
from .losses import LossFn
from .optimizers import Optimizer


def train(
    batch: Iterable[Sample],
    network: Network,
    activator: Activator,
    loss_fn: LossFn,
    optimizer: Optimizer,
) -> float:
    """Run one epoch over ``batch`` and update ``network`` in place.

    Every sample is evaluated and backpropagated, the per-sample gradients
    are averaged, the optimiser turns the mean into a step and the step is
    added to the network.  Returns the mean loss *before* the update.
    """

    total_loss = 0.0
    gradients = []
    for x, y in batch:
        predicted, layer_inputs = network.evaluate_training(x, activator)
        instance_loss, loss_gradient = loss_fn(y, predicted)
        total_loss += float(instance_loss)
        # nothing sits upstream of the network, so the input-side gradient is dropped
        gradient, _ = network.get_gradient(layer_inputs, loss_gradient, activator)
        gradients.append(gradient)
    if not gradients:
        raise ValueError("cannot train on an empty batch")

    step = optimizer.transform(valueset.mean(gradients))
    network.apply_nudge(step)
    return total_loss / len(gradients)


def get_loss(
    batch: Iterable[Sample],
    network: Network,
    activator: Activator,
    loss_fn: LossFn,
) -> float:
    """Return the mean loss of ``network`` over ``batch`` without training."""

    total_loss = 0.0
    count = 0
    for x, y in batch:
        instance_loss, _ = loss_fn(y, network.evaluate(x, activator))
        total_loss += float(instance_loss)
        count += 1
    if count == 0:
        raise ValueError("cannot compute the loss of an empty batch")
    return total_loss / count


class Trainer:
    """Repeat :func:`train` for several epochs and report to callbacks."""

    def __init__(
        self,
        network: Network,
        activator: Activator,
        loss: LossFn,
        optimizer: Optimizer,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.network = network
        self.activator = activator
        self.loss = loss
        self.optimizer = optimizer
        self.callbacks = list(callbacks or [])

    def run(
        self,
        batch: Iterable[Sample],
        epochs: int,
        *,
        eval_batch: Iterable[Sample] | None = None,
        split_loggers: Mapping[str, Sequence[object]] | None = None,
        early_stopping_patience: int | None = None,
        target_loss: float | None = None,
        checkpoint_dir: str | Path | None = None,
    ) -> RunResult:
        if epochs < 1:
            raise ValueError(f"epochs must be >= 1, got {epochs}")
        samples = as_samples(batch)
        eval_samples = as_samples(eval_batch) if eval_batch is not None else None
        split_loggers = split_loggers or {}

        best_loss = float("inf")
        epochs_no_improve = 0
        last_loss = float("nan")
        completed = 0
        for epoch in range(1, epochs + 1):
            last_loss = train(samples, self.network, self.activator, self.loss, self.optimizer)
            completed = epoch
            self._emit_epoch("train", epoch, {"loss": last_loss}, split_loggers)

            monitored = last_loss
            if eval_samples is not None:
                monitored = get_loss(eval_samples, self.network, self.activator, self.loss)
                self._emit_epoch("val", epoch, {"loss": monitored}, split_loggers)

            if monitored < best_loss - 1e-12:
                best_loss = monitored
                epochs_no_improve = 0
                if checkpoint_dir is not None:
                    self._save_checkpoint(Path(checkpoint_dir) / "best.ckpt")
            else:
                epochs_no_improve += 1
                if early_stopping_patience and epochs_no_improve >= early_stopping_patience:
                    break
            if target_loss is not None and monitored <= target_loss:
                break

        if checkpoint_dir is not None:
            self._save_checkpoint(Path(checkpoint_dir) / "last.ckpt")
        return RunResult(epochs=completed, final_loss=float(last_loss))

    # ------------------------------------------------------------------
    # Internal helpers

    def _emit_epoch(
        self,
        split: str,
        epoch: int,
        metrics: Mapping[str, float],
        loggers: Mapping[str, Sequence[object]],
    ) -> None:
        if split == "train":
            for callback in self.callbacks:
                if hasattr(callback, "on_epoch"):
                    callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        for callback in loggers.get(split, []):
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)

    def _save_checkpoint(self, path: Path) -> None:
        state_dict = getattr(self.network, "state_dict", None)
        if state_dict is None:
            return
        payload: Mapping[str, Array] = state_dict()
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            np.savez_compressed(handle, **payload)


def load_checkpoint(path: str | Path) -> Mapping[str, Array]:
    with np.load(Path(path)) as data:
        return {name: data[name] for name in data.files}


__all__ = ["train", "get_loss", "Trainer", "load_checkpoint"]
