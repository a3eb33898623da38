import math

import numpy as np
import pytest

from nanikanizer.cifar10 import DATA_FILES, TEST_FILE, Cifar10Network, main
from nanikanizer.datasets import WHOLE_SIZE, TaggedImage


def _image(label, seed):
    rng = np.random.default_rng(seed)
    return TaggedImage(label, rng.standard_normal(WHOLE_SIZE).astype(np.float32))


def _record(label, seed):
    rng = np.random.default_rng(seed)
    return bytes([label]) + rng.integers(0, 256, WHOLE_SIZE, dtype=np.uint8).tobytes()


@pytest.fixture
def network():
    return Cifar10Network(batch_size=1)


def test_train_batch_returns_finite_loss(network):
    loss = network.train_batch([_image(3, 1)])
    assert math.isfinite(loss)
    assert loss >= 0.0


def test_predict_and_accuracy(network):
    images = [_image(label, label) for label in (0, 5)]
    predictions = [network.predict(image) for image in images]
    assert all(0 <= p < 10 for p in predictions)
    relabelled = [TaggedImage(p, image.pixels) for p, image in zip(predictions, images)]
    assert network.accuracy(relabelled) == 1.0
    wrong = [TaggedImage((p + 1) % 10, image.pixels) for p, image in zip(predictions, images)]
    assert network.accuracy(wrong) == 0.0


def test_wrong_batch_size_raises(network):
    with pytest.raises(ValueError):
        network.train_batch([_image(0, 1), _image(1, 2)])


def test_empty_accuracy_raises(network):
    with pytest.raises(ValueError):
        network.accuracy([])


def test_invalid_batch_size_raises():
    with pytest.raises(ValueError):
        Cifar10Network(batch_size=0)


def test_main_trains_and_reports(tmp_path, capsys):
    for seed, name in enumerate(DATA_FILES):
        (tmp_path / name).write_bytes(_record(seed % 10, seed))
    (tmp_path / TEST_FILE).write_bytes(_record(4, 99))
    code = main([str(tmp_path), "--epochs", "1", "--steps", "1", "--batch-size", "1"])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Loss,Rate"
    loss, rate = (float(field) for field in lines[1].split(","))
    assert math.isfinite(loss)
    assert rate in (0.0, 1.0)


def test_main_reports_missing_files(tmp_path, capsys):
    code = main([str(tmp_path), "--epochs", "1"])
    assert code == 1
    assert capsys.readouterr().err.strip()