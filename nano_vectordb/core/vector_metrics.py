"""Distance metric definitions, strategies and normalization helpers."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, Mapping, Sequence

import numpy as np


class VectorMetric(str, Enum):
    """Supported built-in distance metric values."""

    COSINE = "cosine"
    L2 = "l2"


VectorMetricInput = str | VectorMetric

DEFAULT_ALIASES: Mapping[str, VectorMetric] = {
    "euclidean": VectorMetric.L2,
    "squared_l2": VectorMetric.L2,
}


def normalize_vector_metric(
    metric: VectorMetricInput,
    *,
    supported: Iterable[VectorMetric] | None = None,
    aliases: Mapping[str, VectorMetric] | None = None,
) -> VectorMetric:
    """Normalize user metric input into a `VectorMetric` value."""

    alias_map = {
        key.lower(): value
        for key, value in (DEFAULT_ALIASES if aliases is None else aliases).items()
    }

    if isinstance(metric, VectorMetric):
        normalized = metric
    elif isinstance(metric, str):
        key = metric.strip().lower()
        if key in VectorMetric._value2member_map_:
            normalized = VectorMetric(key)
        elif key in alias_map:
            normalized = alias_map[key]
        else:
            allowed = sorted(
                set(VectorMetric._value2member_map_.keys()) | set(alias_map.keys())
            )
            raise ValueError(f"Unsupported metric: {metric}. Supported: {allowed}")
    else:
        raise ValueError(f"Unsupported metric type: {type(metric).__name__}")

    if supported is not None:
        supported_set = set(supported)
        if normalized not in supported_set:
            allowed = sorted(item.value for item in supported_set)
            raise ValueError(
                f"Unsupported metric: {normalized.value}. Supported: {allowed}"
            )

    return normalized


class DistanceMetric(ABC):
    """Pluggable distance strategy used by `NanoVectorDB.query`.

    Subclasses only need `distance`. `distances` may be overridden with a
    vectorized version, and `to_score` maps a distance onto a score where
    higher is always better.
    """

    name: str = "custom"
    normalizes: bool = False

    @abstractmethod
    def distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        """Return the distance between two vectors of equal length."""

    def distances(self, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        """Return the distance between `query` and every row of `matrix`."""

        return np.array(
            [self.distance(row, query) for row in matrix],
            dtype=np.float32,
        )

    def to_score(self, distance: float) -> float:
        return -distance

    def scores(self, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        """Score every row of `matrix` against `query` (higher is better)."""

        if matrix.shape[0] == 0:
            return np.empty(0, dtype=np.float32)
        return np.array(
            [self.to_score(float(d)) for d in self.distances(matrix, query)],
            dtype=np.float32,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SquaredL2Distance(DistanceMetric):
    """Squared Euclidean distance: non-negative, zero only for equal vectors."""

    name = VectorMetric.L2.value

    def distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        return float(sum((float(x) - float(y)) ** 2 for x, y in zip(a, b)))

    def distances(self, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        diff = matrix - query.reshape(1, -1)
        return np.einsum("ij,ij->i", diff, diff)

    def scores(self, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        return -self.distances(matrix, query)


class CosineDistance(DistanceMetric):
    """Cosine distance `1 - cos(a, b)`; a zero vector is maximally distant."""

    name = VectorMetric.COSINE.value
    normalizes = True

    def distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        dot = sum(float(x) * float(y) for x, y in zip(a, b))
        norm_a = math.sqrt(sum(float(x) * float(x) for x in a))
        norm_b = math.sqrt(sum(float(y) * float(y) for y in b))
        denom = norm_a * norm_b
        if denom == 0.0:
            return 1.0
        return 1.0 - dot / denom

    def distances(self, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(matrix, axis=1) * float(np.linalg.norm(query))
        dots = matrix @ query
        similarity = np.divide(
            dots,
            norms,
            out=np.zeros_like(dots, dtype=np.float32),
            where=norms != 0,
        )
        return 1.0 - similarity

    def to_score(self, distance: float) -> float:
        return 1.0 - distance

    def scores(self, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        return 1.0 - self.distances(matrix, query)


_BUILTIN_METRICS: dict[VectorMetric, type[DistanceMetric]] = {
    VectorMetric.COSINE: CosineDistance,
    VectorMetric.L2: SquaredL2Distance,
}


def make_metric(metric: VectorMetricInput | DistanceMetric) -> DistanceMetric:
    """Build a distance strategy from a metric name, enum value or instance."""

    if isinstance(metric, DistanceMetric):
        return metric
    return _BUILTIN_METRICS[normalize_vector_metric(metric)]()


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Scale every non-zero row of `matrix` to unit length."""

    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    return np.divide(
        matrix,
        norms,
        out=matrix.astype(np.float32, copy=True),
        where=norms != 0,
    ).astype(np.float32, copy=False)
