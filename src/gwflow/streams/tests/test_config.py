import pytest

from gwflow.streams.config import STREAM_GEOMETRY, StreamGeometryConfig


def test_defaults_match_module_constants():
    cfg = StreamGeometryConfig()
    assert cfg.degenerate_tolerance is None
    assert cfg.relative_tolerance == STREAM_GEOMETRY['relative_tolerance']
    assert cfg.area_epsilon == STREAM_GEOMETRY['area_epsilon']


def test_relative_tolerance_scales_with_extent():
    cfg = StreamGeometryConfig(relative_tolerance=1e-3)
    assert cfg.resolve_tolerance(1000.0) == pytest.approx(1.0)
    assert cfg.resolve_tolerance(0.01) == pytest.approx(1e-5)


def test_relative_tolerance_has_a_floor():
    cfg = StreamGeometryConfig()
    assert cfg.resolve_tolerance(0.0) == cfg.min_tolerance
    assert cfg.resolve_tolerance(float('nan')) == cfg.min_tolerance


def test_absolute_tolerance_overrides_extent():
    cfg = StreamGeometryConfig(degenerate_tolerance=0.25)
    assert cfg.resolve_tolerance(1.0e6) == 0.25


def test_legacy_config():
    assert StreamGeometryConfig.legacy().resolve_tolerance(1.0e6) == 0.1


@pytest.mark.parametrize('kwargs', [
    {'degenerate_tolerance': 0.0},
    {'relative_tolerance': -1.0},
    {'min_tolerance': 0.0},
    {'area_epsilon': -1e-3},
])
def test_invalid_settings_raise(kwargs):
    with pytest.raises(ValueError):
        StreamGeometryConfig(**kwargs)
