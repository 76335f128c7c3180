import numpy as np
import pytest

from mandelzoom import (
    ComplexPoint,
    Viewport,
    ZoomConfig,
    describe_frame,
    escape,
    evaluate,
    map_pixel,
    partition_rows,
    render_frame,
)


@pytest.mark.parametrize("height, parts", [(10, 3), (7, 7), (3, 8), (1, 1), (100, 16)])
def test_partition_rows_covers_grid_once(height, parts):
    bands = partition_rows(height, parts)
    assert len(bands) == min(height, parts)
    assert all(len(rows) > 0 for rows in bands)
    covered = [y for rows in bands for y in rows]
    assert covered == list(range(height))


def test_partition_rows_is_balanced():
    sizes = [len(rows) for rows in partition_rows(10, 4)]
    assert sizes == [3, 3, 2, 2]


def test_partition_rows_rejects_bad_input():
    with pytest.raises(ValueError):
        partition_rows(10, 0)
    with pytest.raises(ValueError):
        partition_rows(-1, 2)
    assert partition_rows(0, 4) == []


def test_grid_shape_and_bounds():
    grid = evaluate(Viewport(-2.5, 1.0, -1.25, 1.25), 60, 23, 11, workers=3)
    assert grid.shape == (11, 23)
    assert grid.min() >= 0
    assert grid.max() <= 60


def test_grid_is_read_only():
    grid = evaluate(Viewport(-2.0, 1.0, -1.0, 1.0), 10, 4, 4, workers=1)
    with pytest.raises(ValueError):
        grid[0, 0] = 3


def test_corner_and_centre_scenario():
    viewport = Viewport(-2.0, 1.0, -1.0, 1.0)
    grid = evaluate(viewport, 50, 4, 4, workers=2)

    assert map_pixel(0, 0, 4, 4, viewport) == ComplexPoint(-2.0, -1.0)
    assert grid[0, 0] in (0, 1)
    # pixel (2, 2) samples -0.5 + 0i, inside the main cardioid
    assert grid[2, 2] == 50


def test_main_body_never_escapes():
    grid = evaluate(Viewport(-0.1, 0.1, -0.1, 0.1), 1000, 8, 8, workers=4)
    assert np.all(grid == 1000)


def test_row_zero_is_y_min_edge():
    viewport = Viewport(-2.0, 1.0, -1.0, 1.0)
    grid = evaluate(viewport, 30, 9, 6, workers=2)
    for py in range(6):
        for px in range(9):
            assert grid[py, px] == escape(map_pixel(px, py, 9, 6, viewport), 30)


@pytest.mark.parametrize("workers", [1, 2, 5, 32])
def test_worker_count_does_not_change_result(workers):
    viewport = Viewport(-0.7454294 - 0.003, -0.7454294 + 0.003, 0.113089 - 0.002, 0.113089 + 0.002)
    reference = evaluate(viewport, 300, 31, 17, workers=1)
    grid = evaluate(viewport, 300, 31, 17, workers=workers)
    assert np.array_equal(grid, reference)


def test_repeated_evaluation_is_identical():
    viewport = Viewport(-2.0, 0.6, -1.2, 1.2)
    assert np.array_equal(evaluate(viewport, 80, 16, 12), evaluate(viewport, 80, 16, 12))


def test_evaluate_rejects_bad_input():
    viewport = Viewport(-2.0, 1.0, -1.0, 1.0)
    with pytest.raises(ValueError):
        evaluate(viewport, 10, 0, 4)
    with pytest.raises(ValueError):
        evaluate(viewport, 10, 4, -1)
    with pytest.raises(ValueError):
        evaluate(viewport, -1, 4, 4)


def test_render_frame_carries_frame_parameters():
    config = ZoomConfig(width=24, height=14, max_frames=3)
    frame = describe_frame(2, config)
    result = render_frame(frame, config.width, config.height, workers=2)

    assert result.frame_index == 2
    assert result.viewport == frame.viewport
    assert result.budget == frame.budget
    assert result.iterations.shape == (14, 24)
    assert result.elapsed >= 0.0
    assert np.array_equal(result.inside, result.iterations >= frame.budget)
