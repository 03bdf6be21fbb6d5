import math

import pytest

from smashspeed.geometry.calibration import (
    CalibrationError,
    calibration_from_meters_per_pixel,
    contain_scale,
    parse_reference_length,
    resolve_calibration,
)


def test_contain_scale() -> None:
    assert contain_scale((800, 400), (1000, 500)) == 0.8
    assert contain_scale((800, 800), (1000, 500)) == 0.8
    assert contain_scale((400, 800), (500, 1000)) == 0.8


def test_two_points_on_letterboxed_display() -> None:
    cal = resolve_calibration((100.0, 100.0), (300.0, 100.0), 3.87, (800, 400), (1000, 500))
    assert abs(cal.source_pixel_distance - 250.0) < 1e-9
    assert abs(cal.meters_per_pixel - 0.01548) < 1e-12
    assert cal.reference_length_m == 3.87
    assert cal.valid


@pytest.mark.parametrize("length", [0.0, -1.0, float("nan"), float("inf")])
def test_bad_reference_length_rejected(length: float) -> None:
    with pytest.raises(CalibrationError):
        resolve_calibration((0.0, 0.0), (10.0, 0.0), length, (800, 400), (1000, 500))


def test_unknown_dimensions_rejected() -> None:
    with pytest.raises(CalibrationError):
        resolve_calibration((0.0, 0.0), (10.0, 0.0), 1.0, (800, 400), None)
    with pytest.raises(CalibrationError):
        resolve_calibration((0.0, 0.0), (10.0, 0.0), 1.0, (0, 0), (1000, 500))


def test_coincident_points_rejected() -> None:
    with pytest.raises(CalibrationError):
        resolve_calibration((50.0, 50.0), (50.0, 50.0), 1.0, (800, 400), (1000, 500))


def test_parse_reference_length() -> None:
    assert parse_reference_length(" 3.87 ") == 3.87
    for bad in ["", "abc", "-2", "0", "nan"]:
        with pytest.raises(CalibrationError):
            parse_reference_length(bad)


def test_direct_scale_validation() -> None:
    assert math.isclose(calibration_from_meters_per_pixel(0.01).meters_per_pixel, 0.01)
    with pytest.raises(CalibrationError):
        calibration_from_meters_per_pixel(0.0)
    assert issubclass(CalibrationError, ValueError)
