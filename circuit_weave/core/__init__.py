"""
Core tensor kernels, operator matrices and PRNG helpers.

These functions operate purely on arrays and keys and know nothing about
circuits, geometries or recording.
"""

from circuit_weave.core import kernels, ops, rng

__all__ = ["kernels", "ops", "rng"]
