import pytest

from smashspeed.geometry.calibration import CalibrationError, calibration_from_meters_per_pixel
from smashspeed.pipeline.session import AnalysisSession, SessionConfig
from smashspeed.utils.types import NO_MOTION, Box, FrameDetections


def _box(cx: float, cy: float, conf: float = 0.9, size: float = 10.0) -> Box:
    return Box(x=cx - size / 2.0, y=cy - size / 2.0, width=size, height=size, confidence=conf)


def _frame(t_ms: float, *boxes: Box) -> FrameDetections:
    return FrameDetections(timestamp_ms=t_ms, boxes=tuple(boxes))


def _session(mpp: float = 0.01) -> AnalysisSession:
    s = AnalysisSession()
    s.set_source_size(640, 640)
    s.set_calibration(calibration_from_meters_per_pixel(mpp))
    return s


def test_two_detections_end_to_end() -> None:
    s = _session()
    gen = s.begin_run()
    assert s.state == "collecting"
    assert s.on_frame_detected(gen, _frame(0.0, _box(0.0, 0.0)))
    assert s.on_frame_detected(gen, _frame(100.0, _box(10.0, 0.0)))
    assert s.finish_run(gen)
    assert s.state == "finalized"
    assert s.speeds[0] is None
    assert s.speeds[1] is not None
    assert s.speeds[1].speed_kmh == pytest.approx(3.6)
    assert s.peak.frame_index == 1
    assert s.peak.speed_kmh == pytest.approx(3.6)


def test_out_of_order_arrival_is_sorted_stably() -> None:
    s = _session()
    gen = s.begin_run()
    a = _frame(200.0, _box(1.0, 1.0))
    b = _frame(0.0, _box(2.0, 2.0))
    c = _frame(100.0, _box(3.0, 3.0))
    d = _frame(100.0, _box(4.0, 4.0))
    for f in (a, b, c, d):
        s.on_frame_detected(gen, f)
    assert s.frames == (b, c, d, a)


def test_stale_generation_is_discarded() -> None:
    s = _session()
    old = s.begin_run()
    s.on_frame_detected(old, _frame(0.0, _box(1.0, 1.0)))
    new = s.begin_run()
    assert new != old
    assert s.frames == ()
    assert s.on_frame_detected(old, _frame(50.0, _box(1.0, 1.0))) is False
    assert s.frames == ()
    assert s.finish_run(old) is False
    assert s.state == "collecting"


def test_begin_run_clears_derived_state_and_overrides() -> None:
    s = _session()
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0, _box(0.0, 0.0)))
    s.on_frame_detected(gen, _frame(100.0, _box(10.0, 0.0)))
    s.add_override(0, _box(50.0, 50.0))
    s.finish_run(gen)
    assert s.peak.detected

    s.begin_run()
    assert s.frames == ()
    assert s.centers == ()
    assert s.speeds == ()
    assert s.peak == NO_MOTION
    assert s.calibration is not None


def test_frames_after_finish_are_dropped() -> None:
    s = _session()
    gen = s.begin_run()
    s.finish_run(gen)
    assert s.on_frame_detected(gen, _frame(0.0, _box(1.0, 1.0))) is False


def test_failed_run_degrades_to_no_detections() -> None:
    s = _session()
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0, _box(1.0, 1.0)))
    assert s.fail_run(gen, RuntimeError("decoder crashed"))
    assert s.state == "finalized"
    assert s.frames == ()
    assert s.peak == NO_MOTION


def test_override_replaces_detection_center() -> None:
    s = _session()
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0, _box(0.0, 0.0)))
    s.on_frame_detected(gen, _frame(100.0, _box(10.0, 0.0)))
    s.add_override(1, Box(x=15.0, y=-5.0, width=10.0, height=10.0))
    c = s.centers[1]
    assert c is not None and c.source == "override"
    # override box is clipped into the frame, so its center lands at (20, 5)
    assert c.xy == (20.0, 5.0)
    s.delete_override(1, 0)
    c = s.centers[1]
    assert c is not None and c.source == "detection"
    assert s.overrides(1) == ()


def test_override_follows_its_frame_when_earlier_frames_arrive() -> None:
    s = _session()
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(100.0, _box(10.0, 10.0)))
    s.add_override(0, _box(300.0, 300.0))
    s.on_frame_detected(gen, _frame(0.0, _box(0.0, 0.0)))
    assert s.overrides(0) == ()
    assert len(s.overrides(1)) == 1
    assert s.centers[1] is not None and s.centers[1].xy == (300.0, 300.0)


def test_default_override_box_is_centered_and_editable() -> None:
    s = AnalysisSession()
    s.set_source_size(1000, 500)
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0))
    idx = s.add_override(0)
    assert idx == 0
    assert s.overrides(0)[0] == Box(x=410.0, y=205.0, width=180.0, height=90.0, confidence=1.0)

    moved = s.move_override(0, 0, dx=5000.0, dy=-5000.0)
    assert (moved.x, moved.y) == (820.0, 0.0)
    resized = s.resize_override(0, 0, dw=-1000.0, dh=10000.0)
    assert (resized.width, resized.height) == (2.0, 500.0)
    with pytest.raises(IndexError):
        s.move_override(0, 3, 1.0, 1.0)


def test_default_override_needs_source_size() -> None:
    s = AnalysisSession()
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0))
    with pytest.raises(ValueError):
        s.add_override(0)
    with pytest.raises(IndexError):
        s.add_override(5, _box(1.0, 1.0))


def test_delete_detection_falls_back_to_next_best() -> None:
    s = _session()
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0, _box(10.0, 10.0, conf=0.9), _box(20.0, 20.0, conf=0.5)))
    assert s.centers[0].xy == (10.0, 10.0)
    s.delete_detection(0, 0)
    assert s.centers[0].xy == (20.0, 20.0)
    s.delete_detection(0, 0)
    assert s.centers[0] is None


def test_invalid_calibration_keeps_previous() -> None:
    s = AnalysisSession()
    s.set_source_size(1000, 500)
    cal = s.calibrate((100.0, 100.0), (300.0, 100.0), 3.87, (800, 400))
    assert abs(cal.meters_per_pixel - 0.01548) < 1e-12
    with pytest.raises(CalibrationError):
        s.calibrate((100.0, 100.0), (100.0, 100.0), 3.87, (800, 400))
    with pytest.raises(CalibrationError):
        s.calibrate((100.0, 100.0), (300.0, 100.0), -1.0, (800, 400))
    assert s.calibration == cal


def test_calibrate_requires_source_size() -> None:
    s = AnalysisSession()
    with pytest.raises(CalibrationError):
        s.calibrate((0.0, 0.0), (10.0, 0.0), 1.0, (800, 400))
    assert s.calibration is None


def test_calibration_change_recomputes_speeds() -> None:
    s = _session(mpp=0.01)
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0, _box(0.0, 0.0)))
    s.on_frame_detected(gen, _frame(100.0, _box(10.0, 0.0)))
    s.set_calibration(calibration_from_meters_per_pixel(0.02))
    assert s.speeds[1].speed_kmh == pytest.approx(7.2)


def test_navigation_and_fps_estimate() -> None:
    s = _session()
    assert s.approx_fps() == 30.0
    assert s.seek_time_s(0) == 0.0
    gen = s.begin_run()
    for t in (0.0, 20.0, 40.0, 60.0):
        s.on_frame_detected(gen, _frame(t, _box(1.0, 1.0)))
    assert s.approx_fps() == pytest.approx(50.0)
    assert s.seek_time_s(2) == pytest.approx(0.03)
    assert s.seek_time_s(99) == pytest.approx(0.05)
    assert s.go_to(10) == 3
    assert s.prev_frame() == 2
    assert s.next_frame() == 3
    assert s.next_frame() == 3
    assert s.go_to(-4) == 0


def test_object_width_readout() -> None:
    s = AnalysisSession()
    s.set_source_size(1280, 720)
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0, Box(x=100.0, y=240.0, width=50.0, height=20.0, confidence=0.5)))
    assert s.object_width_m(0) is None
    s.set_calibration(calibration_from_meters_per_pixel(0.01))
    assert s.mapped_boxes(0)[0].width == 100.0
    assert s.object_width_m(0) == pytest.approx(1.0)


def test_results_join_centers_and_speeds() -> None:
    s = _session()
    gen = s.begin_run()
    s.on_frame_detected(gen, _frame(0.0, _box(0.0, 0.0)))
    s.on_frame_detected(gen, _frame(50.0))
    s.on_frame_detected(gen, _frame(100.0, _box(10.0, 0.0)))
    rows = s.results()
    assert [r.frame_index for r in rows] == [0, 1, 2]
    assert rows[1].center is None and rows[1].speed is None
    assert rows[2].speed is not None and rows[2].speed.prior_frame_index == 0


def test_session_config_from_dict() -> None:
    cfg = SessionConfig.from_dict(
        {
            "model": {"input_size": 320},
            "selection": {"policy": "gated_nearest", "params": {"gate_chi2": 5.0}},
            "speed": {"max_dt_s": 0.25},
        }
    )
    assert cfg.model_size == 320
    assert cfg.selection_policy == "gated_nearest"
    assert cfg.speed.max_dt_s == 0.25
    AnalysisSession(cfg)
    with pytest.raises(ValueError):
        SessionConfig.from_dict({"model": {"input_size": 0}})
