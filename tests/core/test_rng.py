import jax
import pytest

from circuit_weave.circuit_weave import Session
from circuit_weave.core.rng import (
    REQUIRED_STREAMS,
    RNGRegistry,
    RNGStream,
    borrow_key,
    draw,
    get_stream,
)
from circuit_weave.exceptions import ExecutionContractError


def test_borrow_key_requires_key():
    with pytest.raises(ValueError):
        borrow_key(None)


def test_borrow_key_splits():
    key = jax.random.PRNGKey(0)
    use_key, next_key = borrow_key(key)
    assert not jax.numpy.array_equal(use_key, next_key)


def test_same_seed_gives_same_sequence():
    a = RNGStream(7)
    b = RNGStream(7)
    assert [a.draw() for _ in range(5)] == [b.draw() for _ in range(5)]


def test_different_seeds_differ():
    a = RNGStream(1)
    b = RNGStream(2)
    assert [a.draw() for _ in range(5)] != [b.draw() for _ in range(5)]


def test_draws_are_unit_interval_floats():
    stream = RNGStream(3)
    samples = [stream.draw() for _ in range(50)]
    assert all(isinstance(r, float) for r in samples)
    assert all(0.0 <= r < 1.0 for r in samples)
    assert stream.draws == 50


def test_normal_consumes_one_key():
    stream = RNGStream(3)
    block = stream.normal((4, 4))
    assert block.shape == (4, 4)
    assert stream.draws == 1


def test_unseeded_stream_uses_config_key():
    with Session(seed=11):
        a = RNGStream().draw()
    with Session(seed=11):
        b = RNGStream().draw()
    assert a == b


def test_registry_streams_are_independent(registry):
    assert set(REQUIRED_STREAMS) <= set(registry.names)
    assert "state_init" in registry
    ctrl = registry.get_stream("ctrl")
    born = registry.get_stream("born")
    ctrl.draw()
    ctrl.draw()
    assert ctrl.draws == 2
    assert born.draws == 0


def test_registry_ctrl_matches_plain_stream(registry):
    plain = RNGStream(42)
    assert [registry.draw("ctrl") for _ in range(3)] == [plain.draw() for _ in range(3)]


def test_registry_extra_streams():
    rng = RNGRegistry(ctrl=1, proj=2, haar=3, born=4, noise=5)
    assert "noise" in rng
    assert get_stream(rng, "noise").seed == 5
    assert 0.0 <= draw(get_stream(rng, "noise")) < 1.0


def test_unknown_stream_raises(registry):
    with pytest.raises(ExecutionContractError, match="Unknown RNG stream"):
        registry.get_stream("missing")
