"""
MediaPipe Pose estimation. Returns landmarks in normalized image coordinates (0..1).
Uses Pose Landmarker task (MediaPipe 0.10+). CPU-only.
"""
from __future__ import annotations

import logging
import os
import urllib.request
from typing import NamedTuple, Optional

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class Landmark(NamedTuple):
    """One tracked joint position for one frame."""
    x: float
    y: float


# MediaPipe Pose landmark indices (same as PoseLandmark)
class LandmarkIdx:
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28

    LEGS = (LEFT_HIP, RIGHT_HIP, LEFT_KNEE, RIGHT_KNEE, LEFT_ANKLE, RIGHT_ANKLE)


# Pose Landmarker model URL (lite = faster, CPU-friendly)
_POSE_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/1/pose_landmarker_lite.task"
_POSE_MODEL_FILENAME = "pose_landmarker_lite.task"


def default_model_dir() -> str:
    """LUNGE_MODEL_DIR if set, else $XDG_CACHE_HOME/lungecount (~/.cache/lungecount)."""
    env_dir = os.getenv("LUNGE_MODEL_DIR", "").strip()
    if env_dir:
        return os.path.expanduser(env_dir)
    cache_root = os.getenv("XDG_CACHE_HOME") or os.path.join(os.path.expanduser("~"), ".cache")
    return os.path.join(cache_root, "lungecount")


def ensure_pose_model(model_dir: Optional[str] = None) -> str:
    """Path to the landmarker .task file in model_dir; downloaded on first use."""
    model_dir = model_dir or default_model_dir()
    path = os.path.join(model_dir, _POSE_MODEL_FILENAME)
    if os.path.isfile(path):
        return path
    os.makedirs(model_dir, exist_ok=True)
    logger.info("downloading pose model to %s", path)
    tmp_path = path + ".part"
    urllib.request.urlretrieve(_POSE_MODEL_URL, tmp_path)
    os.replace(tmp_path, path)
    return path


def create_pose_detector(
    min_detection_confidence: float = 0.5,
    min_tracking_confidence: float = 0.5,
    model_dir: Optional[str] = None,
):
    """Create a single-person PoseLandmarker in IMAGE mode."""
    from mediapipe.tasks.python.core import base_options
    from mediapipe.tasks.python.vision import PoseLandmarker, PoseLandmarkerOptions
    from mediapipe.tasks.python.vision.core import vision_task_running_mode

    model_path = ensure_pose_model(model_dir)
    base = base_options.BaseOptions(model_asset_path=model_path)
    options = PoseLandmarkerOptions(
        base_options=base,
        running_mode=vision_task_running_mode.VisionTaskRunningMode.IMAGE,
        num_poses=1,
        min_pose_detection_confidence=min_detection_confidence,
        min_pose_presence_confidence=min_detection_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    return PoseLandmarker.create_from_options(options)


def process_frame(
    frame_bgr: np.ndarray,
    pose,
) -> Optional[list[Landmark]]:
    """
    Run pose estimation on one BGR frame.
    Returns 33 normalized landmarks, or None if nobody is in frame.
    """
    from mediapipe.tasks.python.vision.core import image as mp_image

    rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    mp_img = mp_image.Image(image_format=mp_image.ImageFormat.SRGB, data=rgb)
    result = pose.detect(mp_img)
    if not result.pose_landmarks:
        return None
    return [Landmark(lm.x, lm.y) for lm in result.pose_landmarks[0]]
