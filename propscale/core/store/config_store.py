"""
Typed access to the scaling ConfigMap.

A :class:`ConfigStore` is bound to one explicit ``(name, namespace)``; there
is no module-level handle. Writes are plain overwrites (last writer wins).
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Tuple

from propscale.core.entities import ConfigRecord, ScalingParameters
from propscale.core.errors import ConfigNotFoundError
from propscale.core.kube.interfaces import ConfigRegistry
from propscale.core.scaling.codec import LINEAR_KEY, decode_linear, encode_linear

logger = logging.getLogger(__name__)


class ConfigStore:
    def __init__(self, registry: ConfigRegistry, *, name: str, namespace: str):
        self._registry = registry
        self.name = name
        self.namespace = namespace

    def __repr__(self) -> str:
        return f"ConfigStore({self.namespace}/{self.name})"

    # ------------------------------------------------------------------ #
    # Raw record access
    # ------------------------------------------------------------------ #

    def fetch(self) -> ConfigRecord:
        """Return the current record; raises :class:`ConfigNotFoundError` when absent."""
        return self._registry.get(self.name, self.namespace)

    def update(self, data: Mapping[str, str]) -> None:
        """Replace the record's data wholesale. No merge, no version check."""
        record = ConfigRecord(name=self.name, namespace=self.namespace, data=dict(data))
        self._registry.put(record)
        logger.info("Scaling ConfigMap %s/%s updated", self.namespace, self.name)

    def delete(self) -> None:
        self._registry.delete(self.name, self.namespace)
        logger.info("Scaling ConfigMap %s/%s deleted", self.namespace, self.name)

    def ensure(self, default_data: Mapping[str, str]) -> Tuple[ConfigRecord, bool]:
        """
        Return the record, creating it from ``default_data`` when it is missing.

        Returns:
            ``(record, created)`` where ``created`` tells whether the defaults
            were (re)published by this call.
        """
        try:
            return self.fetch(), False
        except ConfigNotFoundError:
            pass

        record = ConfigRecord(name=self.name, namespace=self.namespace, data=dict(default_data))
        self._registry.create(record)
        logger.info("Scaling ConfigMap %s/%s re-created with defaults", self.namespace, self.name)
        return record, True

    # ------------------------------------------------------------------ #
    # Linear parameter helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def encode_linear(params: ScalingParameters) -> Dict[str, str]:
        return encode_linear(params)

    @staticmethod
    def decode_linear(data: Mapping[str, str], *, key: str = LINEAR_KEY) -> ScalingParameters:
        return decode_linear(data, key=key)

    def update_params(self, params: ScalingParameters) -> None:
        self.update(encode_linear(params))

    def fetch_params(self, *, key: str = LINEAR_KEY) -> ScalingParameters:
        return decode_linear(self.fetch().data, key=key)
