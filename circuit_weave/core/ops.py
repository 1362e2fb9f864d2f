"""
Operator matrices for the gate catalog.

All operators act on qubits (local dimension 2); two-site operators use the
``|s1 s2⟩`` ordering with the first listed site as the most significant.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp


def identity_operator(dimensions: int = 2) -> jnp.ndarray:
    return jnp.identity(dimensions, dtype=jnp.complex128)


def x_operator() -> jnp.ndarray:
    return jnp.array([[0, 1], [1, 0]], dtype=jnp.complex128)


def y_operator() -> jnp.ndarray:
    return jnp.array([[0, -1j], [1j, 0]], dtype=jnp.complex128)


def z_operator() -> jnp.ndarray:
    return jnp.array([[1, 0], [0, -1]], dtype=jnp.complex128)


def controlled_z_operator() -> jnp.ndarray:
    return jnp.diag(jnp.array([1, 1, 1, -1], dtype=jnp.complex128))


def projection_operator(outcome: int, dimensions: int = 2) -> jnp.ndarray:
    """
    Returns the projector :math:`|outcome⟩⟨outcome|`

    Parameters
    ----------
    outcome: int
        Basis state onto which the operator projects
    dimensions: int
        Local dimension of the site
    """
    return jnp.zeros((dimensions, dimensions), dtype=jnp.complex128).at[
        outcome, outcome
    ].set(1)


@jax.jit
def haar_unitary(real: jnp.ndarray, imag: jnp.ndarray) -> jnp.ndarray:
    r"""
    Builds a Haar distributed unitary from two blocks of standard normal
    samples.

    The Ginibre matrix :math:`Z = A + iB` is QR decomposed and the phases of
    the diagonal of :math:`R` are pushed into :math:`Q`:

    .. math::

        U = Q\,\mathrm{diag}\left(\frac{R_{ii}}{|R_{ii}|}\right)

    Parameters
    ----------
    real: jnp.ndarray
        Square block of normal samples used as the real part
    imag: jnp.ndarray
        Square block of normal samples used as the imaginary part

    Returns
    -------
    jnp.ndarray
        Unitary matrix with the shape of the inputs
    """
    z = real + 1j * imag
    q, r = jnp.linalg.qr(z)
    diagonal = jnp.diag(r)
    return q * (diagonal / jnp.abs(diagonal))[None, :]


__all__ = [
    "identity_operator",
    "x_operator",
    "y_operator",
    "z_operator",
    "controlled_z_operator",
    "projection_operator",
    "haar_unitary",
]
