"""Config-driven training runs."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping

import numpy as np

from ..core.activations import get_activator
from ..core.network import SimpleNetwork
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .losses import REGISTRY as LOSS_REGISTRY
from .optimizers import build_optimizer
from .trainer import Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "xor", "options": {}},
        "model": {"width": 5, "hidden": 1, "activator": "sigmoid", "dtype": "float32"},
        "train": {
            "epochs": 2000,
            "seed": 0,
            "optimizer": "adam",
            "lr": 0.01,
            "loss": "squared_error",
            "run_dir": "runs/xor",
            "enable_plots": False,
        },
    },
    "xor-relu": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "width": 5,
            "hidden": 1,
            "activator": "relu",
            "activator_options": {"leaky_gradient": 0.001},
            "dtype": "float32",
        },
        "train": {
            "epochs": 3000,
            "seed": 1,
            "optimizer": "adam",
            "lr": 0.01,
            "loss": "squared_error",
            "target_loss": 0.01,
            "run_dir": "runs/xor-relu",
            "enable_plots": False,
        },
    },
    "and-gate": {
        "data": {"name": "and", "options": {}},
        "model": {"width": 3, "hidden": 0, "activator": "sigmoid", "dtype": "float64"},
        "train": {
            "epochs": 500,
            "seed": 3,
            "optimizer": "adam",
            "lr": 0.01,
            "loss": "squared_error",
            "run_dir": "runs/and-gate",
            "enable_plots": False,
        },
    },
    "sine-elu": {
        "data": {"name": "sine", "options": {"freq": 1.0, "n_points": 32, "seed": 0}},
        "model": {"width": 8, "hidden": 2, "activator": "elu", "dtype": "float64"},
        "train": {
            "epochs": 1500,
            "seed": 7,
            "optimizer": "adam",
            "lr": 0.005,
            "loss": "squared_error",
            "early_stopping_patience": 200,
            "run_dir": "runs/sine-elu",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"


def read_config_file(path: Path) -> Mapping[str, object]:
    """Decode a JSON or YAML config file into a mapping."""

    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    found: Dict[str, Mapping[str, object]] = {}
    if not _PRESET_DIR.exists():
        return found
    for file in sorted(_PRESET_DIR.iterdir()):
        if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
            continue
        data = read_config_file(file)
        missing = {"data", "model", "train"} - set(data)
        if missing:
            raise KeyError(
                f"Preset {file.name} is missing required sections: {', '.join(sorted(missing))}"
            )
        found[file.stem] = json.loads(json.dumps(data))
    return found


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {n: deepcopy(c) for n, c in _PRESETS.items()}
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Dict[str, object]:
    available = presets()
    try:
        return deepcopy(dict(available[name]))
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Deep-merge ``override`` into ``base`` (in place) and return it."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


def build_network(model_cfg: Mapping[str, object], d_in: int, d_out: int, seed: int) -> SimpleNetwork:
    rng = np.random.default_rng(seed)
    return SimpleNetwork.random(
        inputs=d_in,
        outputs=d_out,
        width=int(model_cfg.get("width", 5)),
        hidden=int(model_cfg.get("hidden", 1)),
        rng=rng,
        dtype=np.dtype(str(model_cfg.get("dtype", "float32"))),
    )


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train the network described by ``config`` and write the run directory."""

    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    dtype = str(model_cfg.get("dtype", "float32"))
    data_options = dict(data_cfg.get("options", {}))
    # the dataset is always cast to the network dtype
    option_dtype = data_options.pop("dtype", None)
    if option_dtype is not None and np.dtype(str(option_dtype)) != np.dtype(dtype):
        raise ValueError(
            f"data.options.dtype={option_dtype} conflicts with model.dtype={dtype}"
        )
    dataset = registry.get(str(data_cfg["name"]), dtype=dtype, **data_options)
    d_in = int(model_cfg.get("d_in", dataset.d_in))
    d_out = int(model_cfg.get("d_out", dataset.d_out))
    if d_in != dataset.d_in:
        raise ValueError(f"Configured d_in={d_in} but dataset {dataset.name} has {dataset.d_in}")
    if d_out != dataset.d_out:
        raise ValueError(f"Configured d_out={d_out} but dataset {dataset.name} has {dataset.d_out}")
    model_cfg.update({"d_in": d_in, "d_out": d_out})

    seed = int(train_cfg.get("seed", 0))
    network = build_network(model_cfg, d_in, d_out, seed)
    activator = get_activator(
        str(model_cfg.get("activator", "sigmoid")), **dict(model_cfg.get("activator_options", {}))
    )
    loss_name = str(train_cfg.get("loss", "squared_error"))
    loss = LOSS_REGISTRY.get(loss_name)
    optimizer_name = str(train_cfg.get("optimizer", "adam"))
    optimizer_options = {k: float(train_cfg[k]) for k in ("lr", "beta1", "beta2") if k in train_cfg}
    optimizer = build_optimizer(optimizer_name, network.zero_gradient(), **optimizer_options)

    run_dir = Path(str(train_cfg.get("run_dir", f"runs/{dataset.name}")))
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        dims=network.dims,
        activator=str(model_cfg.get("activator", "sigmoid")),
        loss=loss_name,
        optimizer=optimizer_name,
        param_count=network.parameter_count(),
    )

    train_jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed)
    train_csv = CsvSink(run_dir / "metrics.csv", split="train")
    capture = MetricsCapture()
    plotter = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    split_loggers: Dict[str, list] = {"train": [train_jsonl, train_csv, capture, plotter]}
    if dataset.val is not None:
        split_loggers["val"] = [JsonlSink(run_dir / "metrics_val.jsonl", split="val", seed=seed)]

    patience = train_cfg.get("early_stopping_patience")
    target_loss = train_cfg.get("target_loss")
    trainer = Trainer(network, activator, loss, optimizer)
    result = trainer.run(
        dataset.train,
        epochs=int(train_cfg.get("epochs", 1)),
        eval_batch=dataset.val,
        split_loggers=split_loggers,
        early_stopping_patience=int(patience) if patience is not None else None,
        target_loss=float(target_loss) if target_loss is not None else None,
        checkpoint_dir=run_dir,
    )
    plotter.close()

    resolved = json.loads(json.dumps(config))
    resolved["model"] = json.loads(json.dumps(model_cfg))
    (run_dir / "config.json").write_text(json.dumps(resolved, indent=2))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=resolved,
        dataset_provenance=dataset.provenance,
        network={"dims": network.dims, "parameters": network.parameter_count(), "dtype": dtype},
    )
    summary = write_summary(
        train_jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32))
    )
    return RunResult(
        epochs=result.epochs,
        final_loss=float(capture.last.get("loss", result.final_loss)),
        metrics_path=str(train_jsonl.path),
        manifest_path=manifest,
        summary_path=summary,
    )


def _print_startup_summary(
    *,
    dataset_name: str,
    dims: list[int],
    activator: str,
    loss: str,
    optimizer: str,
    param_count: int,
) -> None:
    print("=== chainnet run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Dimensions    : {dims}")
    print(f"Activator     : {activator}")
    print(f"Loss          : {loss}")
    print(f"Optimizer     : {optimizer}")
    print(f"Parameters    : {param_count}")
    print("====================")


__all__ = [
    "run_pipeline",
    "load_preset",
    "presets",
    "merge_config",
    "read_config_file",
    "build_network",
]
