"""Cluster fact accessors."""

from .facts import ClusterFacts  # noqa: F401

__all__ = ["ClusterFacts"]
