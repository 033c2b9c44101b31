"""
Final itinerary formatter.

Renders the day-by-day summary sent at the end of the conversation. The
header, day-line prefixes, section headers and the closing summary marker
are matched verbatim by the chat UI and must not change.
"""
import math
import re
from dataclasses import dataclass
from typing import List, Optional

from catalog import Destination, get_destination
from catalog.senegal import (
    BASE_ITINERARY,
    DEFAULT_DURATION_LABEL,
    DEFAULT_TRIP_DAYS,
    GENERIC_HIGHLIGHT,
    HIGHLIGHTS,
    HIGHLIGHTS_HEADER,
    INTEREST_EXTENSIONS,
    ITINERARY_HEADER,
    MIN_DAYS_PER_DESTINATION,
    NEXT_STEPS_HEADER,
    NEXT_STEPS_TEXT,
    SIGNATURE,
    SUMMARY_MARKER,
)

from .state import CollectedInfo


@dataclass
class DayBlock:
    """A consecutive range of days spent at one destination."""
    start_day: int
    end_day: int
    destination: Destination


def parse_days(duration: Optional[str]) -> Optional[int]:
    """
    "10 jours" -> 10, "2 semaines" -> 14. None when the snippet has no
    positive integer.
    """
    if not duration:
        return None

    match = re.search(r"\d+", duration)
    if not match:
        return None

    days = int(match.group())
    if days <= 0:
        return None

    if "semaine" in duration.lower():
        return days * 7
    return days


def calculate_days(duration: Optional[str]) -> int:
    """Days covered by the itinerary; the default trip length when unparseable."""
    days = parse_days(duration)
    return days if days is not None else DEFAULT_TRIP_DAYS


def select_destinations(info: CollectedInfo) -> List[Destination]:
    """Base circuit, extended by interest. Extensions never replace the base."""
    names = list(BASE_ITINERARY)
    for interest, destination_name in INTEREST_EXTENSIONS:
        if interest in info.interests and destination_name not in names:
            names.append(destination_name)
    return [get_destination(name) for name in names]


def allocate_days(total_days: int, destinations: List[Destination]) -> List[DayBlock]:
    """
    Split 1..total_days into consecutive blocks, one per destination.

    Each destination gets max(2, ceil(total / count)) days. The last block
    always ends on total_days; destinations left over once the days run
    out are dropped.
    """
    if total_days <= 0 or not destinations:
        return []

    per_destination = max(
        MIN_DAYS_PER_DESTINATION,
        math.ceil(total_days / len(destinations)),
    )

    blocks: List[DayBlock] = []
    start = 1
    for index, destination in enumerate(destinations):
        if start > total_days:
            break
        if index == len(destinations) - 1:
            end = total_days
        else:
            end = min(start + per_destination - 1, total_days)
        blocks.append(DayBlock(start_day=start, end_day=end, destination=destination))
        start = end + 1

    return blocks


def format_day_line(block: DayBlock) -> str:
    if block.start_day == block.end_day:
        prefix = f"Jour {block.start_day}:"
    else:
        prefix = f"Jours {block.start_day}-{block.end_day}:"
    return f"{prefix} {block.destination.name} - {block.destination.activities}"


def build_itinerary(info: CollectedInfo) -> str:
    blocks = allocate_days(calculate_days(info.duration), select_destinations(info))
    return "\n".join(format_day_line(block) for block in blocks)


def build_highlights(info: CollectedInfo) -> str:
    lines = [f"- {text}" for interest, text in HIGHLIGHTS if interest in info.interests]
    return "\n".join(lines) or f"- {GENERIC_HIGHLIGHT}"


def format_final_itinerary(info: CollectedInfo) -> str:
    """
    Render the final summary message.

    Args:
        info: Slots collected during the conversation

    Returns:
        The message, ending with the summary marker the UI looks for
    """
    # The header only echoes a duration the day lines actually cover
    duration = info.duration if parse_days(info.duration) is not None else DEFAULT_DURATION_LABEL

    return (
        f"{ITINERARY_HEADER}{duration}\n"
        "\n"
        f"{build_itinerary(info)}\n"
        "\n"
        f"{HIGHLIGHTS_HEADER}\n"
        f"{build_highlights(info)}\n"
        "\n"
        f"{NEXT_STEPS_HEADER}\n"
        f"{NEXT_STEPS_TEXT}\n"
        "\n"
        "---\n"
        f"{SIGNATURE}\n"
        "\n"
        f"{SUMMARY_MARKER}"
    )
