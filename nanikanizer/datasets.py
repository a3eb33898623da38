"""Training-data helpers: one-hot targets and CIFAR-10 binary batches."""

from __future__ import annotations

import os
from collections.abc import Iterator
from typing import NamedTuple

import numpy as np

CHANNEL_SIZE = 32 * 32
WHOLE_SIZE = CHANNEL_SIZE * 3
_RECORD_SIZE = 1 + WHOLE_SIZE


class TaggedImage(NamedTuple):
    """A labelled image; ``pixels`` holds height x width x RGB values, interleaved."""

    label: int
    pixels: np.ndarray


def make_ids(size: int, false_value: float = 0.0, true_value: float = 1.0) -> list[np.ndarray]:
    """One target vector per class: ``true_value`` at the class, ``false_value`` elsewhere."""
    ids = []
    for index in range(size):
        vector = np.full(size, false_value, dtype=np.float64)
        vector[index] = true_value
        ids.append(vector)
    return ids


def _decode(record: bytes, normalize: bool) -> TaggedImage:
    channels = np.frombuffer(record, dtype=np.uint8, offset=1).reshape(3, CHANNEL_SIZE)
    pixels = np.ascontiguousarray(channels.T, dtype=np.float32).ravel()
    if normalize:
        with np.errstate(invalid="ignore", divide="ignore"):
            pixels -= pixels.sum(dtype=np.float32) / np.float32(pixels.size)
            pixels /= (pixels * pixels).sum(dtype=np.float32) / np.float32(pixels.size)
    return TaggedImage(record[0], pixels)


def iter_cifar10_images(path: str | os.PathLike, normalize: bool = True) -> Iterator[TaggedImage]:
    """Yield the images of a CIFAR-10 binary batch file one by one.

    With ``normalize`` each image is shifted to zero mean and divided by the
    mean of its squared centred values.
    """
    with open(path, "rb") as stream:
        while record := stream.read(_RECORD_SIZE):
            if len(record) < _RECORD_SIZE:
                raise ValueError(
                    f"{os.fspath(path)}: truncated record of {len(record)} bytes, "
                    f"expected {_RECORD_SIZE}"
                )
            yield _decode(record, normalize)


def load_cifar10_images(path: str | os.PathLike, normalize: bool = True) -> list[TaggedImage]:
    """All images of a CIFAR-10 binary batch file."""
    return list(iter_cifar10_images(path, normalize))