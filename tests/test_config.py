from pathlib import Path

import pytest

from loggen.config import ConfigError, ReplayConfig, build_config, default_parallelism
from loggen.wrap_policy import WrapStrategy


def test_defaults(tmp_path):
    """Test defaults match the documented CLI defaults."""
    config = build_config(tmp_path / 'in', tmp_path / 'out')

    assert config.interval_ms == 250
    assert config.interval == 0.25
    assert config.strategy == WrapStrategy.APPEND
    assert config.parallelism == default_parallelism()
    assert config.run_time == 0
    assert config.metrics_file is None


def test_default_parallelism_is_positive():
    """Test available concurrency is at least one."""
    assert default_parallelism() >= 1


def test_zero_parallelism_means_default(tmp_path):
    """Test 0 selects the available CPU count."""
    config = build_config(tmp_path / 'in', tmp_path / 'out', parallelism=0)

    assert config.parallelism == default_parallelism()


def test_explicit_values(tmp_path):
    """Test explicit settings are kept."""
    config = build_config(tmp_path / 'in', tmp_path / 'out', interval_ms=10,
                          parallelism=3, strategy='rotate', metrics_file=tmp_path / 'm.csv')

    assert config.interval_ms == 10
    assert config.parallelism == 3
    assert config.strategy == WrapStrategy.ROTATE
    assert config.metrics_file == tmp_path / 'm.csv'
    assert isinstance(config.input_root, Path)


def test_unknown_strategy(tmp_path):
    """Test an unknown strategy is a ConfigError."""
    with pytest.raises(ConfigError):
        build_config(tmp_path / 'in', tmp_path / 'out', strategy='shuffle')


@pytest.mark.parametrize('interval', [0, -5, 1.5, True])
def test_invalid_interval(tmp_path, interval):
    """Test interval must be a positive integer."""
    with pytest.raises(ConfigError):
        build_config(tmp_path / 'in', tmp_path / 'out', interval_ms=interval)


@pytest.mark.parametrize('parallelism', [-1, 2.5])
def test_invalid_parallelism(tmp_path, parallelism):
    """Test parallelism must be a non-negative integer."""
    with pytest.raises(ConfigError):
        build_config(tmp_path / 'in', tmp_path / 'out', parallelism=parallelism)


def test_same_input_and_output_rejected(tmp_path):
    """Test replaying a directory onto itself is refused."""
    with pytest.raises(ConfigError):
        build_config(tmp_path, tmp_path)


def test_negative_run_time_rejected(tmp_path):
    """Test run time cannot be negative."""
    with pytest.raises(ConfigError):
        build_config(tmp_path / 'in', tmp_path / 'out', run_time=-1)


def test_config_error_is_value_error():
    """Test ConfigError can be caught as ValueError."""
    assert issubclass(ConfigError, ValueError)


def test_config_is_immutable(tmp_path):
    """Test configuration cannot be changed after startup."""
    config = build_config(tmp_path / 'in', tmp_path / 'out')

    with pytest.raises(AttributeError):
        config.interval_ms = 1

    assert isinstance(config, ReplayConfig)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
