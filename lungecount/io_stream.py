"""
Frame generators for video file or webcam.
Yields (frame_bgr, frame_idx, t_sec); t_sec drives the counter's clock so that
offline videos are debounced on video time rather than processing time.
"""
from __future__ import annotations

import logging
import time
from typing import Generator

import cv2
import numpy as np

logger = logging.getLogger(__name__)

FrameStream = Generator[tuple[np.ndarray, int, float], None, None]

# Used when the container does not report a frame rate.
DEFAULT_VIDEO_FPS = 30.0


def _open_video(video_path: str) -> cv2.VideoCapture:
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise FileNotFoundError(f"Cannot open video: {video_path}")
    return cap


def video_fps(video_path: str) -> float:
    """Frame rate reported by the container, or DEFAULT_VIDEO_FPS."""
    cap = _open_video(video_path)
    try:
        return cap.get(cv2.CAP_PROP_FPS) or DEFAULT_VIDEO_FPS
    finally:
        cap.release()


def video_frames(video_path: str) -> FrameStream:
    """Yield frames from a video file with t_sec = frame_idx / fps."""
    cap = _open_video(video_path)
    try:
        fps = cap.get(cv2.CAP_PROP_FPS) or DEFAULT_VIDEO_FPS
        logger.info("video: %s @ %.1f fps", video_path, fps)
        idx = 0
        while True:
            ret, frame = cap.read()
            if not ret:
                break
            yield (frame, idx, idx / fps)
            idx += 1
    finally:
        cap.release()


def webcam_frames(
    camera_id: int = 0,
    target_fps: float = 20,
) -> FrameStream:
    """Yield webcam frames with t_sec from a monotonic clock."""
    cap = cv2.VideoCapture(camera_id)
    if not cap.isOpened():
        raise RuntimeError(f"Cannot open camera {camera_id}. Check permissions and that no other app is using it.")
    try:
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, 1280)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, 720)
        cap.set(cv2.CAP_PROP_FPS, target_fps)
        idx = 0
        while True:
            ret, frame = cap.read()
            if not ret:
                logger.warning("camera %s: read failed after %s frames", camera_id, idx)
                break
            yield (frame, idx, time.monotonic())
            idx += 1
    finally:
        cap.release()


class FrameClock:
    """Clock that returns the timestamp of the frame currently being processed."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def advance(self, t_sec: float) -> None:
        self.now = t_sec

    def __call__(self) -> float:
        return self.now
