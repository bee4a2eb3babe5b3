"""
Text codec for the ``linear`` entry of the scaling ConfigMap.

The autoscaler stores its parameters as a single JSON object under one key::

    {"linear": '{"nodesPerReplica": 2,"coresPerReplica": 0.5,"min": 0,"max": 0}'}

Field order is fixed for readability only; decoding is by field name.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, Mapping

from propscale.core.entities.params import ScalingParameters
from propscale.core.errors import ConfigDecodeError, InvalidParametersError

logger = logging.getLogger(__name__)

LINEAR_KEY = "linear"
_LINEAR_FIELDS = ("nodesPerReplica", "coresPerReplica", "min", "max")


def format_number(value: float | int) -> str:
    """Render integral values without a decimal point, others in shortest round-trip form."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    as_float = float(value)
    if not math.isfinite(as_float):
        raise InvalidParametersError(f"Cannot encode non-finite value {value!r}")
    if as_float.is_integer() and abs(as_float) < 1e21:
        return str(int(as_float))
    return repr(as_float)


def encode_linear_value(params: ScalingParameters) -> str:
    return (
        f'{{"nodesPerReplica": {format_number(params.nodes_per_replica)},'
        f'"coresPerReplica": {format_number(params.cores_per_replica)},'
        f'"min": {format_number(params.min)},'
        f'"max": {format_number(params.max)}}}'
    )


def encode_linear(params: ScalingParameters) -> Dict[str, str]:
    """Pack parameters into ConfigMap data, ready for a full overwrite."""
    return {LINEAR_KEY: encode_linear_value(params)}


def _reject_constant(token: str) -> Any:
    raise ConfigDecodeError(f"non-finite value {token} is not allowed")


def decode_linear(data: Mapping[str, str], *, key: str = LINEAR_KEY) -> ScalingParameters:
    """
    Decode the ``linear`` entry of ConfigMap data.

    Missing fields default to 0, unknown fields are ignored.

    Raises:
        ConfigDecodeError: if the key is absent, the text is not a JSON object,
            or a field holds a negative, non-finite or non-numeric value.
    """
    raw = data.get(key)
    if raw is None:
        raise ConfigDecodeError(f"ConfigMap data has no '{key}' entry (keys: {sorted(data)})")

    try:
        decoded = json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ConfigDecodeError(f"'{key}' entry is not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ConfigDecodeError(f"'{key}' entry must be a JSON object, got {type(decoded).__name__}")

    unknown = sorted(set(decoded) - set(_LINEAR_FIELDS))
    if unknown:
        logger.debug("Ignoring unknown linear parameter fields: %s", unknown)

    values: Dict[str, Any] = {name: decoded[name] for name in _LINEAR_FIELDS if name in decoded}
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigDecodeError(f"'{name}' must be numeric, got {value!r}")

    try:
        return ScalingParameters.from_dict(values)
    except InvalidParametersError as exc:
        raise ConfigDecodeError(str(exc)) from exc
