"""Video inspection and processing with ffprobe and ffmpeg."""

from __future__ import annotations

import json
import os
import subprocess


class MediaError(Exception):
    """Raised when a video cannot be inspected or processed."""


def _div_trunc(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def aspect_ratio_from_dimensions(width: int, height: int) -> str:
    """Classify dimensions as ``"16:9"``, ``"9:16"`` or ``"other"``."""
    if width == _div_trunc(16 * height, 9):
        return "16:9"
    if height == _div_trunc(16 * width, 9):
        return "9:16"
    return "other"


def _dimension(stream: dict, name: str) -> int:
    value = stream.get(name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise MediaError(
            f"could not parse ffprobe output: {name} is not an integer: {value!r}"
        )
    return value


def get_video_aspect_ratio(file_path: str) -> str:
    """Return the aspect ratio class of the first stream in ``file_path``."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-print_format", "json",
        "-show_streams",
        str(file_path),
    ]
    try:
        result = subprocess.run(cmd, stdout=subprocess.PIPE, check=False)
    except OSError as exc:
        raise MediaError(f"ffprobe error: {exc}") from exc
    if result.returncode != 0:
        raise MediaError(f"ffprobe error: exit status {result.returncode}")

    try:
        output = json.loads(result.stdout)
    except ValueError as exc:
        raise MediaError(f"could not parse ffprobe output: {exc}") from exc
    if not isinstance(output, dict):
        raise MediaError("could not parse ffprobe output: expected an object")

    streams = output.get("streams") or []
    if not isinstance(streams, list):
        raise MediaError("could not parse ffprobe output: streams is not a list")
    if not streams:
        raise MediaError("no video streams found")

    first = streams[0]
    if not isinstance(first, dict):
        raise MediaError("could not parse ffprobe output: stream is not an object")
    return aspect_ratio_from_dimensions(_dimension(first, "width"), _dimension(first, "height"))


def aspect_ratio_directory(aspect_ratio: str) -> str:
    """Return the storage directory used for an aspect ratio class."""
    return {"16:9": "landscape", "9:16": "portrait"}.get(aspect_ratio, "other")


def process_video_for_fast_start(input_file_path: str) -> str:
    """Move the moov atom to the front; return the path of the processed copy."""
    processed_file_path = f"{input_file_path}.processing"
    cmd = [
        "ffmpeg",
        "-i", str(input_file_path),
        "-movflags", "faststart",
        "-codec", "copy",
        "-f", "mp4",
        processed_file_path,
    ]
    try:
        result = subprocess.run(cmd, stderr=subprocess.PIPE, check=False)
    except OSError as exc:
        raise MediaError(f"error processing video: {exc}") from exc
    if result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", errors="replace")
        raise MediaError(
            f"error processing video: {stderr}, exit status {result.returncode}"
        )

    try:
        size = os.stat(processed_file_path).st_size
    except OSError as exc:
        raise MediaError(f"could not stat processed file: {exc}") from exc
    if size == 0:
        raise MediaError("processed file is empty")
    return processed_file_path