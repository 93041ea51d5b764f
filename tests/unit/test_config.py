import pytest

from resight.core.config import LocatorConfig


def test_defaults():
    config = LocatorConfig()
    assert config.context_max_items == 10
    assert config.context_max_distance == 100
    assert config.pair_distance_tolerance == 3
    assert config.area_tolerance == 2
    assert config.similarity_threshold == 0.5
    assert config.column_width == 100
    assert config.scroll_step == 20
    assert config.scroll_max_attempts == 1000


def test_from_env_reads_prefixed_variables():
    config = LocatorConfig.from_env({
        "RESIGHT_SCROLL_STEP": "40",
        "RESIGHT_SCROLL_MAX_ATTEMPTS": "50",
        "RESIGHT_SIMILARITY_THRESHOLD": "0.6",
        "RESIGHT_HISTORY_SIZE": "",
        "UNRELATED": "1",
    })
    assert config.scroll_step == 40.0
    assert config.scroll_max_attempts == 50
    assert isinstance(config.scroll_max_attempts, int)
    assert config.similarity_threshold == 0.6
    assert config.history_size == 8


def test_from_env_rejects_bad_values():
    with pytest.raises(ValueError, match="RESIGHT_STALL_LIMIT"):
        LocatorConfig.from_env({"RESIGHT_STALL_LIMIT": "two"})


def test_with_overrides_returns_a_new_config():
    base = LocatorConfig()
    tuned = base.with_overrides(scroll_step=50)
    assert tuned.scroll_step == 50
    assert base.scroll_step == 20
