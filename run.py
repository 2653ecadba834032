#!/usr/bin/env python3
"""
Lunge rep counter: offline (video) or live (webcam).
Usage:
  Offline: python run.py --video path/to/video.mp4 [--output-dir outputs]
  Live:    python run.py --live [--camera 0] [--record]
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from lungecount.config import LungeConfig
from lungecount.live import run_live_pipeline, run_video_pipeline

logger = logging.getLogger("lungecount.run")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Lunge rep counter: offline video or live webcam")
    ap.add_argument("--video", type=str, default=None, help="Path to video file (offline mode)")
    ap.add_argument("--live", action="store_true", help="Use live webcam")
    ap.add_argument("--camera", type=int, default=0, help="Camera device id (default 0)")
    ap.add_argument("--record", action="store_true", help="Save live_recording.mp4 in live mode")
    ap.add_argument("--output-dir", type=str, default="outputs", help="Output directory")
    ap.add_argument(
        "--model-dir", type=str, default=None,
        help="Pose model cache (default $LUNGE_MODEL_DIR or ~/.cache/lungecount)",
    )
    ap.add_argument("--log-level", type=str, default="INFO", help="Logging level (default INFO)")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.live and args.video:
        print("Error: provide exactly one of --video or --live", file=sys.stderr)
        return 1
    if not args.live and not args.video:
        print("Error: provide --video PATH or --live", file=sys.stderr)
        return 1

    load_dotenv()
    load_dotenv(Path(__file__).resolve().parent / ".env")
    try:
        config = LungeConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.live:
        try:
            reps = run_live_pipeline(
                camera_id=args.camera,
                target_fps=20,
                record=args.record,
                output_dir=args.output_dir,
                config=config,
                model_dir=args.model_dir,
            )
        except RuntimeError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Live done. Reps: {reps}.")
        return 0

    if not os.path.isfile(args.video):
        print(f"Error: video file not found: {args.video}", file=sys.stderr)
        return 1
    try:
        summary = run_video_pipeline(
            args.video, output_dir=args.output_dir, config=config, model_dir=args.model_dir
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    logger.info("summary: %s", summary)
    print(f"Offline done. Reps: {summary['rep_count']}. Annotated video: {args.output_dir}/lunge_annotated.mp4")
    return 0


if __name__ == "__main__":
    sys.exit(main())
