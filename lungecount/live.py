"""
Webcam and video pipelines: capture -> pose -> LungeRepCounter -> overlay.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional

import cv2

from .config import LungeConfig
from .counter import CallbackListener, LungeRepCounter
from .io_stream import FrameClock, video_fps, video_frames, webcam_frames
from .overlay import draw_realtime_overlay
from .pose import create_pose_detector, process_frame

logger = logging.getLogger(__name__)

# Seconds a feedback message stays on screen.
FEEDBACK_DISPLAY_SEC = 2.5
# No-pose warning after this many seconds
NO_POSE_WARN_SEC = 2.0


class _FeedbackBanner:
    """Holds the latest feedback message for FEEDBACK_DISPLAY_SEC of frame time."""

    def __init__(self, clock: FrameClock):
        self.clock = clock
        self.message: Optional[str] = None
        self.shown_at = 0.0

    def show(self, message: str) -> None:
        self.message = message
        self.shown_at = self.clock()

    def current(self) -> Optional[str]:
        if self.message and self.clock() - self.shown_at > FEEDBACK_DISPLAY_SEC:
            self.message = None
        return self.message


def run_live_pipeline(
    camera_id: int = 0,
    target_fps: float = 20,
    record: bool = False,
    output_dir: str = "outputs",
    config: Optional[LungeConfig] = None,
    model_dir: Optional[str] = None,
) -> int:
    """
    Run live capture loop. q=quit, r=reset, s=snapshot.
    Returns the final rep count.
    """
    os.makedirs(output_dir, exist_ok=True)
    pose = create_pose_detector(model_dir=model_dir)
    clock = FrameClock(time.monotonic())
    banner = _FeedbackBanner(clock)
    counter = LungeRepCounter(CallbackListener(on_feedback=banner.show), config=config, clock=clock)

    last_pose_time = clock()
    video_writer: Optional[cv2.VideoWriter] = None
    win_name = "Lunge Counter (q=quit, r=reset, s=snapshot)"
    cv2.namedWindow(win_name, cv2.WINDOW_NORMAL)

    try:
        for frame_bgr, frame_idx, t_sec in webcam_frames(camera_id, target_fps=target_fps):
            clock.advance(t_sec)
            landmarks = process_frame(frame_bgr, pose)
            state = counter.set_results(landmarks)
            if landmarks is not None:
                last_pose_time = t_sec

            status = state["status"]
            if t_sec - last_pose_time > NO_POSE_WARN_SEC:
                status = "Move into frame"

            out_frame = frame_bgr.copy()
            draw_realtime_overlay(
                out_frame,
                landmarks,
                counter.rep_count,
                state["progress"],
                status,
                banner.current(),
            )

            if record and video_writer is None:
                fourcc = cv2.VideoWriter_fourcc(*"mp4v")
                rec_path = os.path.join(output_dir, "live_recording.mp4")
                video_writer = cv2.VideoWriter(
                    rec_path,
                    fourcc,
                    max(1, int(target_fps)),
                    (out_frame.shape[1], out_frame.shape[0]),
                )
            if video_writer is not None:
                video_writer.write(out_frame)

            cv2.imshow(win_name, out_frame)
            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("r"):
                counter.reset()
                logger.info("live: counter reset")
            if key == ord("s"):
                snap_path = os.path.join(output_dir, f"snapshot_{frame_idx}.jpg")
                cv2.imwrite(snap_path, out_frame)
                banner.show("Saved snapshot")
    finally:
        cv2.destroyAllWindows()
        if video_writer is not None:
            video_writer.release()

    logger.info("live: finished with %s reps", counter.rep_count)
    return counter.rep_count


def run_video_pipeline(
    video_path: str,
    output_dir: Optional[str] = None,
    config: Optional[LungeConfig] = None,
    model_dir: Optional[str] = None,
) -> dict[str, Any]:
    """
    Count lunges in a video file. Timing (debounce) follows video time.
    If output_dir is given, writes an annotated lunge_annotated.mp4 there.
    """
    fps = video_fps(video_path)
    pose = create_pose_detector(model_dir=model_dir)
    clock = FrameClock()
    banner = _FeedbackBanner(clock)
    counter = LungeRepCounter(CallbackListener(on_feedback=banner.show), config=config, clock=clock)

    video_writer: Optional[cv2.VideoWriter] = None
    frames = 0
    frames_with_pose = 0
    try:
        for frame_bgr, _, t_sec in video_frames(video_path):
            clock.advance(t_sec)
            frames += 1
            landmarks = process_frame(frame_bgr, pose)
            if landmarks is not None:
                frames_with_pose += 1
            state = counter.set_results(landmarks)

            if output_dir is None:
                continue
            if video_writer is None:
                os.makedirs(output_dir, exist_ok=True)
                video_writer = cv2.VideoWriter(
                    os.path.join(output_dir, "lunge_annotated.mp4"),
                    cv2.VideoWriter_fourcc(*"mp4v"),
                    fps,
                    (frame_bgr.shape[1], frame_bgr.shape[0]),
                )
            draw_realtime_overlay(
                frame_bgr,
                landmarks,
                counter.rep_count,
                state["progress"],
                state["status"],
                banner.current(),
            )
            video_writer.write(frame_bgr)
    finally:
        if video_writer is not None:
            video_writer.release()

    logger.info(
        "video: %s frames (%s with pose), %s reps",
        frames, frames_with_pose, counter.rep_count,
    )
    return {
        "rep_count": counter.rep_count,
        "frames": frames,
        "frames_with_pose": frames_with_pose,
        "fps": fps,
    }
