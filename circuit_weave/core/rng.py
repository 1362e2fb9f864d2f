"""
PRNG helpers that make key threading explicit.

A stream is a chain of JAX keys: every draw splits the current key, consumes
one half and keeps the other for the next draw. Two streams created from the
same seed therefore produce identical sequences, which is what keeps circuit
expansion and circuit execution aligned.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

import jax
import jax.numpy as jnp

from circuit_weave.circuit_weave import Config
from circuit_weave.exceptions import ExecutionContractError

logger = logging.getLogger(__name__)

REQUIRED_STREAMS = ("ctrl", "proj", "haar", "born")


def borrow_key(
    key: Optional[jnp.ndarray],
) -> Tuple[jnp.ndarray, Optional[jnp.ndarray]]:
    """
    Return a split key pair. Requires an explicit key.

    Parameters
    ----------
    key : jnp.ndarray
        PRNG key to split.

    Returns
    -------
    Tuple[jnp.ndarray, Optional[jnp.ndarray]]
        (use_key, next_key) where use_key is suitable for a single draw and
        next_key is the remainder of the split.

    Raises
    ------
    ValueError
        If `key` is None.
    """
    if key is None:
        raise ValueError("PRNG key is required; got None")
    use_key, next_key = jax.random.split(key)
    return use_key, next_key


class RNGStream:
    """
    Single named random stream.

    Parameters
    ----------
    seed : int or None
        Seed of the key chain. When ``None`` a key is borrowed from
        ``Config().random_key``.
    name : str
        Name used in error messages and logs.
    """

    __slots__ = ("_name", "_seed", "_key", "_draws")

    def __init__(self, seed: Optional[int] = None, name: str = "ctrl") -> None:
        self._name = name
        self._seed = seed
        if seed is None:
            self._key = Config().random_key
        else:
            self._key = jax.random.PRNGKey(seed)
        self._draws = 0

    def __repr__(self) -> str:
        return f"RNGStream(name={self._name!r}, seed={self._seed}, draws={self._draws})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    @property
    def draws(self) -> int:
        """Number of keys consumed from this stream so far."""
        return self._draws

    def _next_key(self) -> jnp.ndarray:
        use_key, self._key = borrow_key(self._key)
        self._draws += 1
        return use_key

    def draw(self) -> float:
        """
        Draw one uniform sample in ``[0, 1)``.

        Returns
        -------
        float
            The sample as a Python float (64 bit)
        """
        return float(jax.random.uniform(self._next_key(), dtype=jnp.float64))

    def normal(self, shape: Sequence[int]) -> jnp.ndarray:
        """
        Draw a block of standard normal samples with the given shape.
        A block consumes a single key.
        """
        return jax.random.normal(self._next_key(), tuple(shape), dtype=jnp.float64)


class RNGRegistry:
    """
    Container for named, independently seeded random streams.

    Streams
    -------
    ctrl
        Branch decisions of stochastic circuit operations
    proj
        Decisions about projections (reserved)
    haar
        Haar random unitary generation
    born
        Born rule measurement outcomes
    state_init
        Random initial states

    Additional streams can be registered with extra keyword seeds.

    >>> rng = RNGRegistry(ctrl=42, proj=43, haar=44, born=45)
    >>> rng.draw("ctrl")
    """

    __slots__ = ("_streams",)

    def __init__(
        self,
        *,
        ctrl: int,
        proj: int,
        haar: int,
        born: int,
        state_init: int = 0,
        **extra: int,
    ) -> None:
        seeds = {
            "ctrl": ctrl,
            "proj": proj,
            "haar": haar,
            "born": born,
            "state_init": state_init,
        }
        seeds.update(extra)
        self._streams: Dict[str, RNGStream] = {
            name: RNGStream(seed, name=name) for name, seed in seeds.items()
        }
        logger.debug("Created RNG registry with streams %s", sorted(self._streams))

    def __contains__(self, name: str) -> bool:
        return name in self._streams

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._streams)

    def get_stream(self, name: str) -> RNGStream:
        """
        Get the stream object registered under `name`.

        Raises
        ------
        ExecutionContractError
            If no such stream exists
        """
        try:
            return self._streams[name]
        except KeyError:
            raise ExecutionContractError(
                f"Unknown RNG stream '{name}', available: {sorted(self._streams)}"
            ) from None

    def draw(self, name: str) -> float:
        return self.get_stream(name).draw()

    def normal(self, name: str, shape: Sequence[int]) -> jnp.ndarray:
        return self.get_stream(name).normal(shape)


def get_stream(registry: RNGRegistry, name: str) -> RNGStream:
    return registry.get_stream(name)


def draw(handle: RNGStream) -> float:
    return handle.draw()
