"""Shared core type aliases used across contracts, store, and ports."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Sequence, Union

import numpy as np

NamedParams = Dict[str, Any]
PositionalParams = List[Any]
QueryParams = Union[NamedParams, PositionalParams, None]

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]

VectorLike = Union[Sequence[float], np.ndarray]
AdditionalData = Any
RecordFilter = Callable[[Any], bool]
