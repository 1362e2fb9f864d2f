import jax
import pytest

from circuit_weave.circuit_weave import DEFAULT_PROBABILITY_TOLERANCE, Config, Session


def test_session_sets_and_restores_seed_and_flags():
    cfg = Config()
    before_seed = cfg.random_seed
    before_tolerance = cfg.probability_tolerance
    before_use_jit = cfg.use_jit
    before_record_initial = cfg.record_initial

    with Session(
        seed=0, probability_tolerance=1e-6, use_jit=True, record_initial=True
    ) as c:
        assert c.random_seed == 0
        assert c.probability_tolerance == 1e-6
        assert c.use_jit is True
        assert c.record_initial is True
        key1 = c.random_key
        key2 = c.random_key
        assert not jax.numpy.array_equal(key1, key2)

    # Session should restore prior values
    assert cfg.random_seed == before_seed
    assert cfg.probability_tolerance == before_tolerance
    assert cfg.use_jit == before_use_jit
    assert cfg.record_initial == before_record_initial


def test_session_can_override_subset_and_restore():
    cfg = Config()
    cfg.set_use_jit(False)
    cfg.set_record_initial(False)

    with Session(use_jit=True) as c:
        assert c.use_jit is True
        # unspecified flags remain unchanged
        assert c.record_initial is False
        assert c.probability_tolerance == DEFAULT_PROBABILITY_TOLERANCE

    assert cfg.use_jit is False


def test_nested_sessions_restore_state():
    cfg = Config()
    cfg.set_use_jit(False)
    cfg.set_seed(5)

    with Session(probability_tolerance=1e-3, seed=1) as s1:
        assert s1.probability_tolerance == 1e-3
        assert s1.random_seed == 1
        with Session(use_jit=True, seed=2) as s2:
            assert s2.use_jit is True
            assert s2.random_seed == 2
            assert s2.probability_tolerance == 1e-3
        assert s1.use_jit is False
        assert s1.random_seed == 1

    assert cfg.probability_tolerance == DEFAULT_PROBABILITY_TOLERANCE
    assert cfg.use_jit is False
    assert cfg.random_seed == 5


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        Config().set_probability_tolerance(-1e-3)
    assert Config().probability_tolerance == DEFAULT_PROBABILITY_TOLERANCE


def test_config_is_singleton():
    assert Config() is Config()
