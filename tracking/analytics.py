"""Analytics for summarising check-in acknowledgements."""

from typing import Any, Dict, Iterable


def format_duration(seconds: float, full_precision: bool = False) -> str:
    """
    Format duration in seconds to human-readable string.

    This is the canonical time formatting function used for missed time in
    log lines, the popup surface and the session summary.

    Args:
        seconds: Duration in seconds (truncated to int for display)
        full_precision: If True, always show all non-zero time components
                       including seconds even when hours > 0. Default False
                       for compact display (omits seconds when hours present).

    Returns:
        Formatted string like "1 min 30 secs", "45 secs", "2 hrs 15 mins", or with full_precision
        "1 hr 30 mins 45 secs", "2 hrs 0 mins 0 secs"

    Examples:
        >>> format_duration(90)
        "1 min 30 secs"
        >>> format_duration(3725)
        "1 hr 2 mins"
        >>> format_duration(0)
        "0 sec"
    """
    # Truncate to int at display time only (floor, not round)
    total_seconds = int(seconds) if seconds >= 0 else 0

    hours = total_seconds // 3600
    remaining_seconds = total_seconds % 3600
    mins = remaining_seconds // 60
    secs = remaining_seconds % 60

    parts = []

    if hours > 0:
        hr_unit = "hr" if hours == 1 else "hrs"
        parts.append(f"{hours} {hr_unit}")

    if mins > 0 or (full_precision and hours > 0):
        min_unit = "min" if mins == 1 else "mins"
        parts.append(f"{mins} {min_unit}")

    if secs > 0 or full_precision:
        if hours == 0 or full_precision:
            sec_unit = "sec" if secs == 1 else "secs"
            parts.append(f"{secs} {sec_unit}")

    return " ".join(parts) if parts else "0 sec"


def compute_checkin_summary(acknowledgements: Iterable[Any], popups_shown: int) -> Dict[str, Any]:
    """
    Compute statistics for one check-in session.

    Args:
        acknowledgements: AcknowledgementResult records (anything with
                          missed_seconds and late attributes)
        popups_shown: Number of popups that fired this session

    Returns:
        Dictionary with counts and missed-time totals
    """
    prompt_count = 0
    late_count = 0
    total_missed = 0
    longest_missed = 0

    for result in acknowledgements:
        if result.late:
            late_count += 1
        else:
            prompt_count += 1
        total_missed += result.missed_seconds
        longest_missed = max(longest_missed, result.missed_seconds)

    acknowledged = prompt_count + late_count
    return {
        "popups_shown": popups_shown,
        "acknowledged": acknowledged,
        "unacknowledged": max(popups_shown - acknowledged, 0),
        "prompt_count": prompt_count,
        "late_count": late_count,
        "total_missed_seconds": total_missed,
        "longest_missed_seconds": longest_missed,
    }


def generate_summary_text(stats: Dict[str, Any]) -> str:
    """
    Build a short, human-readable session summary.

    Args:
        stats: Output of compute_checkin_summary

    Returns:
        Summary sentence(s)
    """
    if stats["popups_shown"] == 0:
        return "No check-in popups were shown this session."

    popup_word = "popup" if stats["popups_shown"] == 1 else "popups"
    text = (
        f"{stats['popups_shown']} check-in {popup_word} shown, "
        f"{stats['prompt_count']} answered on time, {stats['late_count']} late."
    )
    if stats["total_missed_seconds"] > 0:
        text += f" Missed time: {format_duration(stats['total_missed_seconds'])}."
    if stats["unacknowledged"]:
        text += f" {stats['unacknowledged']} still waiting for a response."
    return text
