"""
Error taxonomy for the propscale runtime.

Two families matter to callers:

* transient conditions (``ConfigNotFoundError``, and ``TransportError`` while
  a deleted record is being recreated) which a waiter may choose to retry;
* fatal conditions (``CardinalityError``, timeouts, decode failures) which
  abort the current step with the context needed to diagnose it.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class PropscaleError(Exception):
    """Base class for every error raised by propscale."""


class ConfigNotFoundError(PropscaleError):
    """The scaling ConfigMap does not exist (yet)."""

    def __init__(self, name: str, namespace: str):
        super().__init__(f"ConfigMap {namespace}/{name} not found")
        self.name = name
        self.namespace = namespace


class ConfigDecodeError(PropscaleError, ValueError):
    """A stored parameter blob could not be decoded."""


class InvalidParametersError(PropscaleError, ValueError):
    """Scaling parameters violate their value constraints."""


class UnknownPolicyError(PropscaleError, ValueError):
    """No scaling policy is registered under the requested name."""


class CardinalityError(PropscaleError):
    """A lookup that must match exactly one object matched zero or several."""

    def __init__(self, kind: str, namespace: str, selector: Mapping[str, str] | str, count: int):
        if isinstance(selector, Mapping):
            selector = ",".join(f"{key}={value}" for key, value in sorted(selector.items()))
        super().__init__(f"expected 1 {kind} in {namespace} matching '{selector}', got {count}")
        self.kind = kind
        self.namespace = namespace
        self.selector = selector
        self.count = count


class EncodingOverflowError(PropscaleError):
    """A resource quantity sum is not representable as an exact 64-bit integer."""


class TransportError(PropscaleError):
    """The cluster API call failed for infrastructure reasons."""

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ConfigMismatchError(PropscaleError):
    """A recreated ConfigMap does not carry the expected data."""

    def __init__(self, expected: Mapping[str, str], observed: Mapping[str, str]):
        super().__init__(f"recreated ConfigMap data {dict(observed)!r} does not match {dict(expected)!r}")
        self.expected = dict(expected)
        self.observed = dict(observed)


class WaitTimeoutError(PropscaleError):
    """A poll loop gave up before its condition was satisfied."""

    def __init__(self, description: str, *, attempts: int, waited: float):
        super().__init__(f"timed out after {waited:.1f}s ({attempts} attempts) waiting for {description}")
        self.description = description
        self.attempts = attempts
        self.waited = waited


class ReplicaConvergenceTimeout(WaitTimeoutError):
    """Replica count never reached the policy-computed target."""

    def __init__(self, *, expected: Optional[int], observed: Optional[int], attempts: int, waited: float):
        description = f"replicas to satisfy {expected}, got {observed}"
        super().__init__(description, attempts=attempts, waited=waited)
        self.expected = expected
        self.observed = observed


class ConfigRecreationTimeout(WaitTimeoutError):
    """A deleted ConfigMap was not recreated in time."""

    def __init__(self, name: str, namespace: str, *, attempts: int, waited: float, last_error: Any = None):
        description = f"ConfigMap {namespace}/{name} to be re-created"
        if last_error is not None:
            description = f"{description} (last error: {last_error})"
        super().__init__(description, attempts=attempts, waited=waited)
        self.name = name
        self.namespace = namespace
        self.last_error = last_error


__all__ = [
    "PropscaleError",
    "ConfigNotFoundError",
    "ConfigDecodeError",
    "InvalidParametersError",
    "UnknownPolicyError",
    "CardinalityError",
    "EncodingOverflowError",
    "TransportError",
    "ConfigMismatchError",
    "WaitTimeoutError",
    "ReplicaConvergenceTimeout",
    "ConfigRecreationTimeout",
]
