"""
Stateless tensor kernels on dense lattice states.

Design notes
------------
- A lattice state is a complex tensor with one axis per site (axis ``i`` is
  site ``i + 1``); kernels never see sites, geometries or gates.
- Target axes are moved to the front, flattened against the rest and
  contracted with `opt_einsum`; the result is moved back in place.
- Axes are passed as tuples so the jitted variants can treat them as static.
"""

from __future__ import annotations

from functools import reduce
from typing import Iterable, Sequence, Tuple

import jax
import jax.numpy as jnp
import opt_einsum as oe


def _prod(values: Iterable[int]) -> int:
    return int(reduce(lambda a, b: a * b, values, 1))


def apply_op_tensor(
    state: jnp.ndarray,
    operator: jnp.ndarray,
    axes: Tuple[int, ...],
) -> jnp.ndarray:
    """
    Apply an operator to the given axes of a lattice state.

    Parameters
    ----------
    state : jnp.ndarray
        Lattice state tensor, one axis per site.
    operator : jnp.ndarray
        Operator shaped (prod(target_dims), prod(target_dims)); the first
        entry of `axes` is the most significant factor.
    axes : Tuple[int, ...]
        Target axes in operator order.

    Returns
    -------
    jnp.ndarray
        Updated state tensor with the original shape.
    """
    axes = tuple(axes)
    front = tuple(range(len(axes)))
    moved = jnp.moveaxis(state, axes, front)
    target_flat = _prod(moved.shape[: len(axes)])
    ps = moved.reshape((target_flat, -1))
    op = operator.reshape((target_flat, target_flat))
    ps = oe.contract("ab,bc->ac", op, ps, backend="jax")
    return jnp.moveaxis(ps.reshape(moved.shape), front, axes)


apply_op_tensor_jit = jax.jit(apply_op_tensor, static_argnums=(2,))


def normalize(state: jnp.ndarray) -> jnp.ndarray:
    return state / jnp.linalg.norm(state.ravel())


def site_probabilities(state: jnp.ndarray, axis: int) -> jnp.ndarray:
    """
    Born probabilities of the local basis states of one site.
    """
    moved = jnp.moveaxis(state, axis, 0)
    probs = jnp.sum(
        jnp.abs(moved.reshape((moved.shape[0], -1))) ** 2, axis=1
    )
    return probs / jnp.sum(probs)


def project(state: jnp.ndarray, axis: int, outcome: int) -> Tuple[jnp.ndarray, float]:
    """
    Project one site onto a basis state and renormalize.

    Returns
    -------
    Tuple[jnp.ndarray, float]
        The normalized post-projection state and the squared norm that the
        projection kept (the Born probability of `outcome`).
    """
    mask = jnp.zeros(state.shape[axis], dtype=state.dtype).at[outcome].set(1)
    shape = [1] * state.ndim
    shape[axis] = state.shape[axis]
    projected = state * mask.reshape(shape)
    weight = float(jnp.sum(jnp.abs(projected) ** 2))
    if weight == 0.0:
        return projected, weight
    return projected / jnp.sqrt(weight), weight


def expectation_single(
    state: jnp.ndarray, operator: jnp.ndarray, axis: int
) -> float:
    """
    Real part of :math:`⟨ψ|O_{axis}|ψ⟩` for a normalized state.
    """
    applied = apply_op_tensor(state, operator, (axis,))
    return float(jnp.real(jnp.vdot(state.ravel(), applied.ravel())))


def schmidt_probabilities(state: jnp.ndarray, cut: int) -> jnp.ndarray:
    """
    Squared Schmidt coefficients across the bond between axis ``cut - 1``
    and axis ``cut``.
    """
    left = _prod(state.shape[:cut])
    singular = jnp.linalg.svd(state.reshape((left, -1)), compute_uv=False)
    probs = singular**2
    return probs / jnp.sum(probs)


def entropy(probs: jnp.ndarray, order: float = 1, threshold: float = 1e-16) -> float:
    """
    Von Neumann (``order == 1``) or Renyi entropy of a probability vector,
    natural logarithm.
    """
    probs = probs[probs > threshold]
    if order == 1:
        return float(-jnp.sum(probs * jnp.log(probs)))
    if order == 0:
        return float(jnp.log(probs.size))
    return float(jnp.log(jnp.sum(probs**order)) / (1 - order))


def projector_product_expectation(
    state: jnp.ndarray, zero_axes: Sequence[int], one_axis: int
) -> float:
    r"""
    :math:`⟨ψ| (\prod_k P0_k) P1_{one} |ψ⟩`, the probability that every axis
    in `zero_axes` reads 0 and `one_axis` reads 1.
    """
    index = [slice(None)] * state.ndim
    for axis in zero_axes:
        index[axis] = 0
    index[one_axis] = 1
    return float(jnp.sum(jnp.abs(state[tuple(index)]) ** 2))


def product_state(bits: Sequence[int], dimensions: int = 2) -> jnp.ndarray:
    """
    Computational basis product state for the given local basis labels.
    """
    state = jnp.zeros((dimensions,) * len(bits), dtype=jnp.complex128)
    return state.at[tuple(int(b) for b in bits)].set(1)


__all__ = [
    "apply_op_tensor",
    "apply_op_tensor_jit",
    "normalize",
    "site_probabilities",
    "project",
    "expectation_single",
    "schmidt_probabilities",
    "entropy",
    "projector_product_expectation",
    "product_state",
]
