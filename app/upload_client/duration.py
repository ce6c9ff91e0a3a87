"""
Best-effort playback duration probing with ffprobe.

probe_duration() never raises: a missing binary, a timeout, a non-zero
exit or unparseable output all return None, and the upload continues
without a duration.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 30


def probe_duration(path: str | os.PathLike, timeout: float = PROBE_TIMEOUT) -> float | None:
    """
    Return the media duration of path in seconds, or None.

    Reads format.duration, falling back to the first stream that reports one.
    """
    cmd = [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        os.fspath(path),
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        logger.warning("ffprobe not found; skipping duration", extra={"path": str(path)})
        return None
    except subprocess.TimeoutExpired:
        logger.warning("ffprobe timed out", extra={"path": str(path), "timeout": timeout})
        return None

    if result.returncode != 0:
        stderr = result.stderr.strip() if result.stderr else "Unknown error"
        logger.warning(
            "ffprobe failed to read media",
            extra={"path": str(path), "returncode": result.returncode, "stderr": stderr},
        )
        return None

    try:
        probe_data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        logger.warning(
            "Failed to parse ffprobe output", extra={"path": str(path), "error": str(e)}
        )
        return None

    candidates = [probe_data.get("format", {}).get("duration")]
    candidates += [stream.get("duration") for stream in probe_data.get("streams", [])]

    for value in candidates:
        if value in (None, "", "N/A"):
            continue
        try:
            duration = float(value)
        except (TypeError, ValueError):
            continue
        if duration >= 0:
            return duration

    logger.info("No duration reported by ffprobe", extra={"path": str(path)})
    return None
