"""
Senegal trip catalog.

This module holds the declarative tables the conversation engine runs on:
slot extraction rules, the destination gazetteer, the essential questions,
phase keywords and the itinerary building blocks. The engine reads these
tables and contains no Senegal-specific literals of its own.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Pattern, Tuple


class SlotKind(str, Enum):
    """How a slot stores what the rules find."""
    SCALAR = "SCALAR"  # First match wins, replaces previous value
    LIST = "LIST"  # All matches collected, unioned across turns


@dataclass(frozen=True)
class SlotRule:
    """
    One extraction rule.

    Attributes:
        slot: CollectedInfo field the rule fills
        kind: SCALAR or LIST
        pattern: Regex matched against the lower-cased message; the matched
            text (after transform) becomes the value
        keywords: Substrings tested against the lower-cased message; any hit
            yields `value`
        value: Fixed value produced by a keyword hit
        transform: Applied to the matched text of a pattern rule
    """
    slot: str
    kind: SlotKind
    pattern: Optional[Pattern[str]] = None
    keywords: Tuple[str, ...] = ()
    value: Optional[str] = None
    transform: Callable[[str], str] = str.strip


@dataclass(frozen=True)
class Destination:
    """A gazetteer entry."""
    name: str
    aliases: Tuple[str, ...]
    activities: str = ""


@dataclass(frozen=True)
class QuestionSpec:
    """An essential question, asked in catalog order."""
    slot: str
    priority: int
    prompt: str


# =============================================================================
# VOCABULARIES
# =============================================================================

INTERESTS = ("culture", "plages", "nature", "aventure")

TRAVEL_STYLES = ("confort", "authentique", "mixte")

DESTINATIONS: List[Destination] = [
    Destination(
        name="Dakar",
        aliases=("dakar",),
        activities="Découverte de la capitale, île de Gorée",
    ),
    Destination(
        name="Saint-Louis",
        aliases=("saint-louis",),
        activities="Patrimoine UNESCO, architecture coloniale",
    ),
    Destination(
        name="Sine-Saloum",
        aliases=("sine saloum", "saloum"),
        activities="Deltas, mangroves, observation oiseaux",
    ),
    Destination(
        name="Île de Gorée",
        aliases=("gorée",),
        activities="Maison des Esclaves, ruelles colorées",
    ),
    Destination(
        name="Lac Rose",
        aliases=("lac rose",),
        activities="Paysages roses uniques, sel et traditions",
    ),
    Destination(
        name="Saly",
        aliases=("saly",),
        activities="Plages dorées, détente océanique",
    ),
    Destination(
        name="Casamance",
        aliases=("casamance",),
        activities="Villages diolas, forêts et rizières",
    ),
]


def get_destination(name: str) -> Destination:
    """Get a gazetteer entry by canonical name."""
    for destination in DESTINATIONS:
        if destination.name == name:
            return destination
    raise ValueError(f"Unknown destination: {name}")


# =============================================================================
# SLOT RULES
# =============================================================================

DURATION_PATTERN = re.compile(r"\d+\s*(jours?|semaines?|mois)")
TRAVELERS_PATTERN = re.compile(r"\d+\s*(personnes?|voyageurs?|gens)")

SLOT_RULES: List[SlotRule] = [
    SlotRule(slot="duration", kind=SlotKind.SCALAR, pattern=DURATION_PATTERN),
    SlotRule(slot="travelers", kind=SlotKind.SCALAR, pattern=TRAVELERS_PATTERN),

    SlotRule(slot="interests", kind=SlotKind.LIST, keywords=("culture", "culturel"), value="culture"),
    SlotRule(slot="interests", kind=SlotKind.LIST, keywords=("plage", "mer"), value="plages"),
    SlotRule(slot="interests", kind=SlotKind.LIST, keywords=("nature", "naturel"), value="nature"),
    SlotRule(slot="interests", kind=SlotKind.LIST, keywords=("aventure", "activité"), value="aventure"),

    # Style rules are ordered: the first hit wins
    SlotRule(slot="travel_style", kind=SlotKind.SCALAR, keywords=("luxe", "confort"), value="confort"),
    SlotRule(slot="travel_style", kind=SlotKind.SCALAR, keywords=("authentique", "local"), value="authentique"),
] + [
    SlotRule(
        slot="specific_destinations",
        kind=SlotKind.LIST,
        keywords=destination.aliases,
        value=destination.name,
    )
    for destination in DESTINATIONS
]


# =============================================================================
# QUESTIONS
# =============================================================================

ESSENTIAL_QUESTIONS: List[QuestionSpec] = [
    QuestionSpec(
        slot="duration",
        priority=1,
        prompt="Combien de jours comptez-vous rester au Sénégal ? (exemple: 7 jours, 10 jours, 2 semaines)",
    ),
    QuestionSpec(
        slot="travelers",
        priority=2,
        prompt="Combien êtes-vous à voyager ? En couple, en famille, entre amis ?",
    ),
    QuestionSpec(
        slot="interests",
        priority=3,
        prompt=(
            "Qu'est-ce qui vous attire le plus : l'histoire et la culture (Dakar, Saint-Louis), "
            "les plages paradisiaques (Saly, Casamance), ou la nature authentique (Sine-Saloum, brousse) ?"
        ),
    ),
]

READY_MESSAGE = "Parfait ! J'ai maintenant assez d'informations pour vous proposer un itinéraire."
READY_PRIORITY = 4


# =============================================================================
# PHASE KEYWORDS
# =============================================================================

AGREEMENT_KEYWORDS = ("parfait", "convient", "oui")

VALIDATION_KEYWORDS = ("validé", "résumé", "whatsapp", "final", "créez", "maintenant")

GREETING_MIN_LENGTH = 10
DISCOVERY_MIN_SLOTS = 3
PLANNING_STALL_LIMIT = 5
REFINEMENT_STALL_LIMIT = 6


# =============================================================================
# ITINERARY
# =============================================================================

DEFAULT_TRIP_DAYS = 7
MIN_DAYS_PER_DESTINATION = 2

BASE_ITINERARY = ("Dakar", "Saint-Louis", "Lac Rose")

# (interest, destination appended to the base itinerary)
INTEREST_EXTENSIONS = (
    ("plages", "Saly"),
    ("nature", "Sine-Saloum"),
)

# (interest, highlight bullet), in display order
HIGHLIGHTS = (
    ("culture", "Immersion dans la culture sénégalaise authentique"),
    ("plages", "Détente sur les plus belles plages atlantiques"),
    ("nature", "Découverte des paysages naturels uniques"),
)
GENERIC_HIGHLIGHT = "Voyage personnalisé selon vos préférences"

ITINERARY_HEADER = "🇸🇳 VOTRE VOYAGE AU SÉNÉGAL - "
DEFAULT_DURATION_LABEL = "plusieurs jours"
HIGHLIGHTS_HEADER = "💡 Points forts de votre voyage:"
NEXT_STEPS_HEADER = "📱 Prochaines étapes:"
NEXT_STEPS_TEXT = "Contactez-nous pour organiser votre voyage personnalisé !"
SIGNATURE = "Itinéraire créé par Maxime, votre conseiller Sénégal"

# Matched verbatim by the chat UI to show the WhatsApp button
SUMMARY_MARKER = "RÉCAPITULATIF PERSONNALISÉ"
