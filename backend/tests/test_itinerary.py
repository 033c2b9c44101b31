"""
Tests for the final itinerary formatter.

The header, day-line prefixes, section headers and closing marker are
matched verbatim by the chat UI, so these tests pin them byte for byte.
"""

import re

import pytest

from catalog import DESTINATIONS, SUMMARY_MARKER
from engine.itinerary import (
    allocate_days,
    build_highlights,
    calculate_days,
    format_day_line,
    format_final_itinerary,
    parse_days,
    select_destinations,
)
from engine.state import CollectedInfo

DAY_LINE = re.compile(r"^Jours? (\d+)(?:-(\d+))?: ", re.MULTILINE)


def _day_ranges(text: str):
    return [
        (int(start), int(end) if end else int(start))
        for start, end in DAY_LINE.findall(text)
    ]


class TestCalculateDays:

    @pytest.mark.parametrize("duration,expected", [
        (None, 7),
        ("", 7),
        ("10 jours", 10),
        ("1 jour", 1),
        ("2 semaines", 14),
        ("1 semaine", 7),
        ("1 mois", 1),
        ("quelques jours", 7),
        ("0 jours", 7),
    ])
    def test_calculate_days(self, duration, expected):
        assert calculate_days(duration) == expected

    @pytest.mark.parametrize("duration", [None, "", "quelques jours", "0 jours"])
    def test_parse_days_unresolved(self, duration):
        assert parse_days(duration) is None


class TestSelectDestinations:

    def test_base_circuit(self):
        names = [d.name for d in select_destinations(CollectedInfo())]
        assert names == ["Dakar", "Saint-Louis", "Lac Rose"]

    def test_beach_adds_saly(self):
        names = [d.name for d in select_destinations(CollectedInfo(interests=["plages"]))]
        assert names == ["Dakar", "Saint-Louis", "Lac Rose", "Saly"]

    def test_nature_and_beach_extend_in_order(self):
        info = CollectedInfo(interests=["nature", "culture", "plages"])
        names = [d.name for d in select_destinations(info)]
        assert names == ["Dakar", "Saint-Louis", "Lac Rose", "Saly", "Sine-Saloum"]


class TestAllocateDays:

    def test_seven_days_four_destinations(self):
        blocks = allocate_days(7, DESTINATIONS[:4])
        assert [(b.start_day, b.end_day) for b in blocks] == [(1, 2), (3, 4), (5, 6), (7, 7)]

    def test_last_destination_absorbs_remainder(self):
        blocks = allocate_days(14, DESTINATIONS[:3])
        assert [(b.start_day, b.end_day) for b in blocks] == [(1, 5), (6, 10), (11, 14)]

    def test_short_trip_drops_extra_destinations(self):
        blocks = allocate_days(3, DESTINATIONS[:5])
        assert [(b.start_day, b.end_day) for b in blocks] == [(1, 2), (3, 3)]

    def test_single_day(self):
        blocks = allocate_days(1, DESTINATIONS[:3])
        assert [(b.start_day, b.end_day) for b in blocks] == [(1, 1)]

    @pytest.mark.parametrize("destination_count", [1, 2, 3, 4, 5])
    def test_blocks_partition_every_trip_length(self, destination_count):
        for total_days in range(1, 43):
            blocks = allocate_days(total_days, DESTINATIONS[:destination_count])
            covered = []
            for block in blocks:
                assert block.start_day <= block.end_day
                covered.extend(range(block.start_day, block.end_day + 1))
            assert covered == list(range(1, total_days + 1))

    def test_no_days_no_blocks(self):
        assert allocate_days(0, DESTINATIONS[:3]) == []


class TestDayLines:

    def test_single_day_line(self):
        block = allocate_days(7, DESTINATIONS[:4])[-1]
        assert format_day_line(block) == f"Jour 7: {block.destination.name} - {block.destination.activities}"

    def test_range_line(self):
        block = allocate_days(7, DESTINATIONS[:4])[0]
        assert format_day_line(block) == "Jours 1-2: Dakar - Découverte de la capitale, île de Gorée"


class TestHighlights:

    def test_highlights_per_interest(self):
        text = build_highlights(CollectedInfo(interests=["plages", "culture", "nature"]))
        assert text.splitlines() == [
            "- Immersion dans la culture sénégalaise authentique",
            "- Détente sur les plus belles plages atlantiques",
            "- Découverte des paysages naturels uniques",
        ]

    def test_generic_highlight_without_interests(self):
        assert build_highlights(CollectedInfo()) == "- Voyage personnalisé selon vos préférences"

    def test_generic_highlight_for_adventure_only(self):
        assert build_highlights(CollectedInfo(interests=["aventure"])) == "- Voyage personnalisé selon vos préférences"


class TestFormatFinalItinerary:

    def test_culture_and_beach_trip(self):
        text = format_final_itinerary(CollectedInfo(duration="7 jours", interests=["culture", "plages"]))

        assert "🇸🇳 VOTRE VOYAGE AU SÉNÉGAL - 7 jours" in text
        assert len(_day_ranges(text)) >= 4
        assert "Immersion dans la culture sénégalaise authentique" in text
        assert "Détente sur les plus belles plages atlantiques" in text

    def test_section_headers_and_marker(self):
        text = format_final_itinerary(CollectedInfo(duration="7 jours", interests=["culture"]))

        assert text.startswith("🇸🇳 VOTRE VOYAGE AU SÉNÉGAL - ")
        assert "💡 Points forts de votre voyage:" in text
        assert "📱 Prochaines étapes:" in text
        assert "Itinéraire créé par Maxime" in text
        assert text.endswith("\n\nRÉCAPITULATIF PERSONNALISÉ")

    def test_exact_layout(self):
        text = format_final_itinerary(CollectedInfo(duration="2 semaines", interests=["nature"]))
        assert text == (
            "🇸🇳 VOTRE VOYAGE AU SÉNÉGAL - 2 semaines\n"
            "\n"
            "Jours 1-4: Dakar - Découverte de la capitale, île de Gorée\n"
            "Jours 5-8: Saint-Louis - Patrimoine UNESCO, architecture coloniale\n"
            "Jours 9-12: Lac Rose - Paysages roses uniques, sel et traditions\n"
            "Jours 13-14: Sine-Saloum - Deltas, mangroves, observation oiseaux\n"
            "\n"
            "💡 Points forts de votre voyage:\n"
            "- Découverte des paysages naturels uniques\n"
            "\n"
            "📱 Prochaines étapes:\n"
            "Contactez-nous pour organiser votre voyage personnalisé !\n"
            "\n"
            "---\n"
            "Itinéraire créé par Maxime, votre conseiller Sénégal\n"
            "\n"
            "RÉCAPITULATIF PERSONNALISÉ"
        )

    def test_zero_duration_uses_default_label(self):
        text = format_final_itinerary(CollectedInfo(duration="0 jours", interests=["culture"]))
        assert text.startswith("🇸🇳 VOTRE VOYAGE AU SÉNÉGAL - plusieurs jours\n")
        assert "0 jours" not in text
        assert _day_ranges(text)[-1][1] == 7

    def test_missing_duration(self):
        text = format_final_itinerary(CollectedInfo(interests=["culture"]))
        assert "VOTRE VOYAGE AU SÉNÉGAL - plusieurs jours" in text
        assert _day_ranges(text)[-1][1] == 7

    @pytest.mark.parametrize("duration", [None, "1 jour", "3 jours", "10 jours", "3 semaines"])
    @pytest.mark.parametrize("interests", [[], ["plages"], ["plages", "nature"]])
    def test_marker_and_day_coverage(self, duration, interests):
        info = CollectedInfo(duration=duration, interests=interests)
        text = format_final_itinerary(info)

        assert SUMMARY_MARKER in text
        covered = []
        for start, end in _day_ranges(text):
            covered.extend(range(start, end + 1))
        assert covered == list(range(1, calculate_days(duration) + 1))
