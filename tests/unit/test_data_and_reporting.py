import json

import numpy as np
import pytest

from chainnet.data import registry
from chainnet.reporting.metrics import CsvSink, JsonlSink
from chainnet.reporting.plots import PlotAdapter
from chainnet.reporting.summary import build_summary, compute_auc


def test_logic_gate_datasets():
    xor = registry.get("xor")
    assert xor.d_in == 2 and xor.d_out == 1
    assert xor.train.targets.ravel().tolist() == [0.0, 1.0, 1.0, 0.0]
    assert xor.train.inputs.dtype == np.float32
    assert registry.get("and", dtype="float64").train.inputs.dtype == np.float64
    with pytest.raises(ValueError):
        xor.split("val")


def test_sine_split_is_deterministic():
    first = registry.get("sine", n_points=20, seed=3)
    second = registry.get("sine", n_points=20, seed=3)
    assert len(first.train) + len(first.val) == 20
    assert np.array_equal(first.val.inputs, second.val.inputs)


def test_unknown_dataset():
    with pytest.raises(KeyError, match="Available datasets"):
        registry.get("mnist")


def test_sinks_write_records(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", split="train", seed=4, sha="abc")
    csv_sink = CsvSink(tmp_path / "m.csv")
    for epoch, loss in enumerate([0.5, 0.25], start=1):
        jsonl.on_epoch(epoch, {"loss": loss})
        csv_sink.on_epoch(epoch, {"loss": loss})
    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert records[1] == {"epoch": 2, "split": "train", "seed": 4, "sha": "abc", "loss": 0.25}
    lines = (tmp_path / "m.csv").read_text().splitlines()
    assert lines[0] == "epoch,loss,split"
    assert len(lines) == 3


def test_summary_statistics():
    records = [{"epoch": i, "loss": v, "split": "train"} for i, v in enumerate([4.0, 2.0, 1.0])]
    summary = build_summary(records, tail=2)
    stats = summary["metrics"]["loss"]
    assert stats["first"] == 4.0 and stats["last"] == 1.0 and stats["min"] == 1.0
    assert stats["tail_auc"] == pytest.approx(1.5)
    assert compute_auc([1.0]) == 0.0


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"loss": 1.0})
    adapter.on_epoch(2, {"loss": 0.5})
    assert adapter.close() == tmp_path / "loss.png"
    assert (tmp_path / "loss.png").exists()
    assert PlotAdapter(tmp_path / "off").close() is None


def test_csv_sink_split_defaults_to_train(tmp_path):
    default = CsvSink(tmp_path / "train.csv")
    val = CsvSink(tmp_path / "val.csv", split="val")
    default(1, {"loss": 1.0})
    val(1, {"loss": 2.0})
    val(2, {"loss": 1.5, "note": "skipped"})
    assert (tmp_path / "train.csv").read_text().splitlines()[1] == "1,1.0,train"
    val_lines = (tmp_path / "val.csv").read_text().splitlines()
    assert val_lines == ["epoch,loss,split", "1,2.0,val", "2,1.5,val"]
    assert val.records == 2
