from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Tuple

import cv2

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from smashspeed.geometry.calibration import CalibrationError, parse_reference_length, resolve_calibration
from smashspeed.utils.config import resolve_path


def main() -> None:
    ap = argparse.ArgumentParser(description="Click two points a known distance apart; prints meters per pixel.")
    ap.add_argument("--video", required=True)
    ap.add_argument("--time-s", type=float, default=0.0)
    ap.add_argument("--display-width", type=int, default=960)
    args = ap.parse_args()

    uri = resolve_path(args.video, os.getcwd())
    cap = cv2.VideoCapture(uri)
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open source: {uri}")
    cap.set(cv2.CAP_PROP_POS_MSEC, float(args.time_s) * 1000.0)
    ok, frame = cap.read()
    cap.release()
    if not ok:
        raise RuntimeError("Failed to read frame for calibration")

    src_h, src_w = frame.shape[:2]
    disp_w = int(args.display_width)
    disp_h = int(round(src_h * disp_w / float(src_w)))
    view = cv2.resize(frame, (disp_w, disp_h), interpolation=cv2.INTER_AREA)

    clicks: List[Tuple[float, float]] = []
    win = "calibrate"

    def _on_mouse(event, x, y, flags, param) -> None:
        if event != cv2.EVENT_LBUTTONDOWN or len(clicks) >= 2:
            return
        clicks.append((float(x), float(y)))
        cv2.circle(view, (int(x), int(y)), 5, (0, 0, 255), -1)
        if len(clicks) == 2:
            cv2.line(view, (int(clicks[0][0]), int(clicks[0][1])), (int(x), int(y)), (0, 255, 255), 1)
        cv2.imshow(win, view)

    cv2.namedWindow(win, cv2.WINDOW_AUTOSIZE)
    cv2.imshow(win, view)
    cv2.setMouseCallback(win, _on_mouse)

    while len(clicks) < 2:
        k = cv2.waitKey(50) & 0xFF
        if k == ord("q"):
            cv2.destroyWindow(win)
            return
    cv2.waitKey(300)
    cv2.destroyWindow(win)

    try:
        length = parse_reference_length(input("Reference length between the points (meters): "))
        cal = resolve_calibration(clicks[0], clicks[1], length, (disp_w, disp_h), (src_w, src_h))
    except CalibrationError as e:
        print(f"Invalid calibration: {e}")
        sys.exit(2)
    print(f"Source distance: {cal.source_pixel_distance:.2f} px")
    print(f"meters_per_pixel: {cal.meters_per_pixel:.8f}")


if __name__ == "__main__":
    main()
