"""SCORM 1.2 CMI helpers.

Maps the platform's numeric progress data onto the CMI vocabulary:

- cmi.core.lesson_status: one of ``ScormLessonStatusEnum``
- cmi.core.score.raw: 0-100
- cmi.core.session_time / cmi.core.total_time: ``HHHH:MM:SS``

Parsing is lenient: malformed input yields ``0`` instead of raising, and
callers treat ``0`` as "no data".
"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from app.core.constants import ScormLessonStatusEnum

DEFAULT_PASSING_SCORE = 80

Number = Union[int, float]

_WHOLE = re.compile(r"[0-9]+")
_SECONDS = re.compile(r"[0-9]+(\.[0-9]+)?")


def format_duration(seconds: Number) -> str:
    """Render seconds as ``HHHH:MM:SS``; hours grow past four digits as needed."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        seconds = 0

    total_seconds = int(math.floor(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    return f"{hours:04d}:{minutes:02d}:{secs:02d}"


def parse_duration(text: Optional[str]) -> int:
    """Parse ``H:MM:SS`` (any hour width, fractional seconds allowed) into whole seconds."""
    if not text or not isinstance(text, str):
        return 0

    parts = text.split(":")
    if len(parts) != 3:
        return 0

    # ASCII digits only; no signs, spaces, underscores or "nan".
    if not (_WHOLE.fullmatch(parts[0]) and _WHOLE.fullmatch(parts[1]) and _SECONDS.fullmatch(parts[2])):
        return 0

    hours = int(parts[0])
    minutes = int(parts[1])
    seconds = float(parts[2])
    if minutes >= 60 or seconds >= 60:
        return 0

    return hours * 3600 + minutes * 60 + int(seconds)


def add_durations(first: Optional[str], second: Optional[str]) -> str:
    return format_duration(parse_duration(first) + parse_duration(second))


def derive_lesson_status(
    progress_percent: Number,
    quiz_score: Optional[Number] = None,
    passing_score: Optional[Number] = DEFAULT_PASSING_SCORE,
) -> ScormLessonStatusEnum:
    """Five-way lesson status.

    A quiz score, when present, decides pass/fail even at 100% progress;
    zero progress is "not attempted" regardless of any score.
    """
    if progress_percent <= 0:
        return ScormLessonStatusEnum.NOT_ATTEMPTED

    if quiz_score is not None:
        threshold = DEFAULT_PASSING_SCORE if passing_score is None else passing_score
        if quiz_score >= threshold:
            return ScormLessonStatusEnum.PASSED
        return ScormLessonStatusEnum.FAILED

    if progress_percent >= 100:
        return ScormLessonStatusEnum.COMPLETED

    return ScormLessonStatusEnum.INCOMPLETE


def score_from_counts(correct: int, total: int) -> float:
    if total <= 0:
        return 0

    correct = min(max(correct, 0), total)
    score = Decimal(correct) * 100 / Decimal(total)
    return float(score.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
