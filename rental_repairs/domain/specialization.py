"""
Worker Specialization

Single home for specialization parsing, matching and keyword inference.
Worker and the unit scheduling engine both go through can_handle(); nothing
else compares specialization strings.
"""
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union


class Specialization(str, Enum):
    GENERAL_MAINTENANCE = "General Maintenance"
    PLUMBING = "Plumbing"
    ELECTRICAL = "Electrical"
    HVAC = "HVAC"
    CARPENTRY = "Carpentry"
    PAINTING = "Painting"
    LOCKSMITH = "Locksmith"
    APPLIANCE_REPAIR = "Appliance Repair"

    @property
    def is_generalist(self) -> bool:
        return self is Specialization.GENERAL_MAINTENANCE

    @property
    def display_name(self) -> str:
        return self.value

    def can_handle(self, required: Optional[Union["Specialization", str]]) -> bool:
        """
        True when a worker with this specialization may take work that
        requires `required`. No requirement matches everything, and the
        generalist matches any requirement.
        """
        if required is None or (isinstance(required, str) and not required.strip()):
            return True
        required = parse_specialization(required)
        return self is required or self.is_generalist


_ALIASES: Dict[str, Specialization] = {
    "plumbing": Specialization.PLUMBING,
    "plumber": Specialization.PLUMBING,
    "electrical": Specialization.ELECTRICAL,
    "electrician": Specialization.ELECTRICAL,
    "hvac": Specialization.HVAC,
    "hvac technician": Specialization.HVAC,
    "heating": Specialization.HVAC,
    "cooling": Specialization.HVAC,
    "carpentry": Specialization.CARPENTRY,
    "carpenter": Specialization.CARPENTRY,
    "painting": Specialization.PAINTING,
    "painter": Specialization.PAINTING,
    "locksmith": Specialization.LOCKSMITH,
    "appliance repair": Specialization.APPLIANCE_REPAIR,
    "appliance technician": Specialization.APPLIANCE_REPAIR,
    "appliancerepair": Specialization.APPLIANCE_REPAIR,
    "general maintenance": Specialization.GENERAL_MAINTENANCE,
    "generalmaintenance": Specialization.GENERAL_MAINTENANCE,
    "maintenance": Specialization.GENERAL_MAINTENANCE,
    "general": Specialization.GENERAL_MAINTENANCE,
}


def parse_specialization(value: Optional[Union[Specialization, str]]) -> Specialization:
    """Normalize free text to a Specialization; blank or unknown -> generalist."""
    if isinstance(value, Specialization):
        return value
    if value is None or not value.strip():
        return Specialization.GENERAL_MAINTENANCE

    normalized = " ".join(value.strip().lower().replace("_", " ").split())
    if normalized in _ALIASES:
        return _ALIASES[normalized]

    for member in Specialization:
        if member.name.lower() == normalized.replace(" ", "_"):
            return member
    return Specialization.GENERAL_MAINTENANCE


def all_specializations() -> List[Dict[str, str]]:
    """Specializations with display names, for pickers."""
    return [{"value": s.value, "display_name": s.display_name} for s in Specialization]


# ─────────────────────── Keyword inference ───────────────────────

DEFAULT_SPECIALIZATION_KEYWORDS: Sequence[Tuple[str, Sequence[str]]] = (
    ("Appliance Repair", (
        "appliance", "refrigerator", "washer", "dryer", "dishwasher",
        "oven", "stove", "microwave", "freezer",
    )),
    ("Locksmith", (
        "lock", "key", "security", "deadbolt", "locked out", "lockout",
        "unlock", "rekey",
    )),
    ("Plumbing", (
        "plumb", "leak", "water", "drain", "pipe", "faucet", "toilet",
        "sink", "clog", "drip", "flush", "sewer",
    )),
    ("Electrical", (
        "electric", "power", "outlet", "wiring", "light", "switch",
        "breaker", "circuit", "lamp", "fixture", "voltage", "spark",
    )),
    ("HVAC", (
        "hvac", "furnace", "thermostat", "ventilation", "conditioner",
        "heating system", "cooling system", "heat pump", "air conditioning",
    )),
    ("Painting", ("paint", "repaint", "brush", "roller", "color")),
    ("Carpentry", ("wood", "cabinet", "carpenter", "shelf", "wooden")),
)


class SpecializationKeywordMap:
    """
    Ordered {category: keywords} rules for inferring the specialization a
    request needs from its free text. First match wins; matching is
    case-insensitive substring containment.
    """

    def __init__(self, rules: Iterable[Tuple[Union[Specialization, str], Iterable[str]]]):
        self._rules: List[Tuple[Specialization, Tuple[str, ...]]] = [
            (
                parse_specialization(category),
                tuple(k.strip().lower() for k in keywords if k and k.strip()),
            )
            for category, keywords in rules
        ]

    @classmethod
    def default(cls) -> "SpecializationKeywordMap":
        return cls(DEFAULT_SPECIALIZATION_KEYWORDS)

    @classmethod
    def from_config(cls, entries: Iterable[Dict[str, Any]]) -> "SpecializationKeywordMap":
        return cls((entry["category"], entry.get("keywords", [])) for entry in entries)

    @property
    def rules(self) -> List[Tuple[Specialization, Tuple[str, ...]]]:
        return list(self._rules)

    def determine(self, title: Optional[str], description: Optional[str] = None) -> Specialization:
        text = f"{title or ''} {description or ''}".strip().lower()
        if not text:
            return Specialization.GENERAL_MAINTENANCE

        for specialization, keywords in self._rules:
            if any(keyword in text for keyword in keywords):
                return specialization
        return Specialization.GENERAL_MAINTENANCE
