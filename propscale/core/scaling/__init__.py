"""
Scaling policies and parameter codecs for propscale.
"""

from __future__ import annotations

from .codec import LINEAR_KEY, decode_linear, encode_linear
from .policy import (
    LinearPolicy,
    ScalingPolicy,
    available_policies,
    create_policy,
    register_policy,
    unregister_policy,
)

__all__ = [
    "LINEAR_KEY",
    "decode_linear",
    "encode_linear",
    "ScalingPolicy",
    "LinearPolicy",
    "available_policies",
    "register_policy",
    "unregister_policy",
    "create_policy",
]
