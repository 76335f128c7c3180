import math

import pytest

from mandelzoom import (
    Viewport,
    ZoomConfig,
    describe_frame,
    frame_params,
    frame_radii,
    iter_frames,
    iteration_budget,
)


def _reference_budget(viewport, width, constant=66.5):
    scale = width / (viewport.y_max - viewport.y_min)
    return int(math.sqrt(math.sqrt(2 * abs(1 - math.sqrt(5 * scale)))) * constant)


def test_default_config():
    config = ZoomConfig()
    assert (config.width, config.height) == (1920, 1080)
    assert config.multiplier == 1.03
    assert config.max_frames == 480


@pytest.mark.parametrize(
    "kwargs",
    [
        {"multiplier": 1.0},
        {"multiplier": 0.9},
        {"rad_x": 0.0},
        {"rad_y": -1.0},
        {"width": 0},
        {"height": -5},
        {"iteration_constant": 0.0},
        {"max_frames": -1},
    ],
)
def test_config_validation(kwargs):
    with pytest.raises(ValueError):
        ZoomConfig(**kwargs)


def test_first_frame_uses_initial_radii():
    config = ZoomConfig()
    viewport, budget = frame_params(0, config)
    assert viewport == Viewport(config.x_focus - 2.0, config.x_focus + 2.0, config.y_focus - 1.0, config.y_focus + 1.0)
    assert budget == 227
    assert budget == _reference_budget(viewport, config.width)


def test_radii_contract_geometrically():
    config = ZoomConfig(multiplier=1.03)
    radii = [frame_radii(n, config) for n in range(200)]
    for (rx, ry), (next_rx, next_ry) in zip(radii, radii[1:]):
        assert next_rx < rx
        assert next_ry < ry
    assert radii[10][0] == pytest.approx(2.0 / 1.03 ** 10)
    assert radii[10][1] == pytest.approx(1.0 / 1.03 ** 10)


def test_viewport_stays_centred_on_focus():
    config = ZoomConfig(x_focus=-0.75, y_focus=0.1, multiplier=1.5)
    for n in (0, 3, 9):
        viewport, _ = frame_params(n, config)
        assert (viewport.x_min + viewport.x_max) / 2 == pytest.approx(-0.75)
        assert (viewport.y_min + viewport.y_max) / 2 == pytest.approx(0.1)


def test_budget_grows_with_zoom():
    config = ZoomConfig()
    budgets = [frame_params(n, config)[1] for n in range(0, 481, 20)]
    assert budgets == sorted(budgets)
    assert budgets[-1] > budgets[0]


def test_budget_monotone_in_scale():
    previous = 0
    for exponent in range(-6, 16):
        y_width = 2.0 ** -exponent
        budget = iteration_budget(Viewport(-1.0, 1.0, 0.0, y_width), 640, 66.5)
        assert budget >= previous
        assert budget >= 1
        previous = budget


def test_budget_matches_abs_form_for_real_frames():
    config = ZoomConfig(width=640, height=360)
    for n in (0, 50, 200, 480):
        viewport, budget = frame_params(n, config)
        assert budget == _reference_budget(viewport, config.width)


def test_budget_constant_is_tunable():
    viewport = Viewport(-2.0, 2.0, -1.0, 1.0)
    assert iteration_budget(viewport, 1920, 133.0) > iteration_budget(viewport, 1920, 66.5)


def test_negative_frame_index():
    with pytest.raises(ValueError):
        frame_params(-1, ZoomConfig())


def test_frames_do_not_depend_on_order():
    config = ZoomConfig(width=320, height=180, max_frames=30)
    forward = [describe_frame(n, config) for n in range(31)]
    backward = [describe_frame(n, config) for n in reversed(range(31))]
    assert forward == list(reversed(backward))


def test_iter_frames_is_inclusive():
    config = ZoomConfig(max_frames=5)
    frames = list(iter_frames(config))
    assert [frame.index for frame in frames] == [0, 1, 2, 3, 4, 5]
    assert [frame.index for frame in iter_frames(config, start=3)] == [3, 4, 5]
    assert [frame.index for frame in iter_frames(config, start=1, stop=2)] == [1, 2]


def test_descriptor_reports_zoom_power():
    config = ZoomConfig(multiplier=2.0)
    frame = describe_frame(4, config)
    assert frame.power == pytest.approx(4.0)
    assert frame_params(4, config) == (frame.viewport, frame.budget)
