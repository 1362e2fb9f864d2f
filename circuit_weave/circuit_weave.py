import random
import sys
from typing import Any

import jax
import jax.numpy as jnp

DEFAULT_PROBABILITY_TOLERANCE = 1e-10


class Config:
    _instance = None

    def __new__(cls, *args: Any, **kwargs: Any) -> "Config":
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls, *args, **kwargs)
        return cls._instance

    def __init__(self) -> None:
        if not hasattr(self, "_initialized"):
            self._initialized = True  # Prevents reinitialization
            self._random_seed = random.randint(0, sys.maxsize)
            self._key = jax.random.PRNGKey(self._random_seed)
            self._probability_tolerance = DEFAULT_PROBABILITY_TOLERANCE
            self._use_jit = False
            self._record_initial = False

    def set_seed(self, seed: int) -> None:
        """
        For reproducability one can set a seed for random operations
        Parameters
        ----------
        seed: int
            Seed used when an RNG stream is created without its own seed
        """
        self._random_seed = seed
        self._key = jax.random.PRNGKey(seed)

    @property
    def random_seed(self) -> int:
        return self._random_seed

    @property
    def random_key(self) -> jnp.ndarray:
        """
        Splits the current key and returns a new one for random operations
        """
        key, self._key = jax.random.split(self._key)
        return key

    @property
    def probability_tolerance(self) -> float:
        return self._probability_tolerance

    def set_probability_tolerance(self, tolerance: float) -> None:
        """
        Sets the slack allowed above 1 when the outcome probabilities of a
        stochastic operation are summed at circuit construction time.

        Parameters
        ----------
        tolerance: float
            Non-negative tolerance
        """
        tolerance = float(tolerance)
        if tolerance < 0:
            raise ValueError(
                f"Probability tolerance must be non-negative, got {tolerance}"
            )
        self._probability_tolerance = tolerance

    @property
    def use_jit(self) -> bool:
        return self._use_jit

    def set_use_jit(self, use_jit: bool) -> None:
        self._use_jit = bool(use_jit)

    @property
    def record_initial(self) -> bool:
        return self._record_initial

    def set_record_initial(self, record_initial: bool) -> None:
        self._record_initial = bool(record_initial)


class Session:
    """
    Lightweight context manager to scope Config settings per run.

    Example:
        with Session(seed=0, probability_tolerance=1e-8):
            ...
    Restores previous Config values on exit so tests/runs stay isolated.
    """

    def __init__(
        self,
        *,
        seed: int | None = None,
        probability_tolerance: float | None = None,
        use_jit: bool | None = None,
        record_initial: bool | None = None,
    ) -> None:
        cfg = Config()
        self._prev = {
            "seed": cfg.random_seed,
            "key": cfg._key,  # type: ignore[attr-defined]
            "probability_tolerance": cfg.probability_tolerance,
            "use_jit": cfg.use_jit,
            "record_initial": cfg.record_initial,
        }
        self._seed = seed
        self._probability_tolerance = probability_tolerance
        self._use_jit = use_jit
        self._record_initial = record_initial
        self._cfg = cfg

    def __enter__(self) -> "Config":
        if self._seed is not None:
            self._cfg.set_seed(self._seed)
        if self._probability_tolerance is not None:
            self._cfg.set_probability_tolerance(self._probability_tolerance)
        if self._use_jit is not None:
            self._cfg.set_use_jit(self._use_jit)
        if self._record_initial is not None:
            self._cfg.set_record_initial(self._record_initial)
        return self._cfg

    def __exit__(self, exc_type, exc, tb) -> None:
        self._cfg._random_seed = self._prev["seed"]  # type: ignore[attr-defined]
        self._cfg._key = self._prev["key"]  # type: ignore[attr-defined]
        self._cfg.set_probability_tolerance(self._prev["probability_tolerance"])
        self._cfg.set_use_jit(self._prev["use_jit"])
        self._cfg.set_record_initial(self._prev["record_initial"])
