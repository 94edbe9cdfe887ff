import dataclasses
import re
from dataclasses import dataclass
from typing import List, Optional

from atlas.shared.models import CountryData, DataPoint, PoliticalLeader

CODE_PATTERN = re.compile(r"^[a-z]{3}$")

# Chart categories are percentages; totals outside this band get a warning.
SUM_TOLERANCE = (99.0, 101.0)

CHART_SECTIONS = {
    "demographics": ("age_groups", "religions", "urban_rural", "education_levels"),
    "statistics": ("gdp_sectors", "employment", "trade", "spending"),
}

# (attribute, error key, message). Error keys use the editor's field names.
LEADER_REQUIRED = [
    ("name", "leader.name", "Leader name is required"),
    ("title", "leader.title", "Leader title is required"),
    ("party", "leader.party", "Leader party is required"),
    ("in_power_since", "leader.inPowerSince", "Leader in power since is required"),
    ("description", "leader.description", "Leader description is required"),
]


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(frozen=True)
class ChartWarning:
    section: str
    category: str
    total: float

    @property
    def message(self) -> str:
        return f"Values sum to {self.total:.1f}%, not 100%"


def leader_is_empty(leader: Optional[PoliticalLeader]) -> bool:
    """True when no leader data has been entered at all ("no leader yet")."""
    if leader is None:
        return True
    return not any([
        leader.name, leader.title, leader.party,
        leader.in_power_since, leader.description, leader.image_url,
    ])


def validate_draft(draft: CountryData) -> List[FieldError]:
    """
    Blocking checks run before publish.
    Leader fields are all-or-nothing: a fully empty leader passes, a partial one
    fails on every missing required field.
    """
    errors: List[FieldError] = []

    if not draft.code:
        errors.append(FieldError("code", "ISO code is required"))
    elif not CODE_PATTERN.match(draft.code):
        errors.append(FieldError("code", "ISO code must be exactly 3 lowercase letters"))
    if not draft.name:
        errors.append(FieldError("name", "Country name is required"))
    if not draft.capital:
        errors.append(FieldError("capital", "Capital is required"))
    if not draft.region:
        errors.append(FieldError("region", "Region is required"))
    if not draft.population:
        errors.append(FieldError("population", "Population is required"))
    elif draft.population < 0:
        errors.append(FieldError("population", "Population must be a non-negative integer"))

    if not leader_is_empty(draft.leader):
        for attr, key, message in LEADER_REQUIRED:
            if not getattr(draft.leader, attr):
                errors.append(FieldError(key, message))

    return errors


def chart_total(points: List[DataPoint]) -> float:
    return sum(p.value for p in points)


def chart_warnings(draft: CountryData) -> List[ChartWarning]:
    """Non-blocking: chart categories whose values do not add up to ~100%."""
    warnings = []
    low, high = SUM_TOLERANCE
    for section, categories in CHART_SECTIONS.items():
        block = getattr(draft, section)
        for category in categories:
            points = getattr(block, category)
            if not points:
                continue
            total = chart_total(points)
            if total < low or total > high:
                warnings.append(ChartWarning(section, category, total))
    return warnings


def normalize_points(points: List[DataPoint]) -> List[DataPoint]:
    """Rescales values proportionally so they sum to 100 (one decimal place)."""
    total = chart_total(points)
    if total == 0:
        return [dataclasses.replace(p) for p in points]
    return [dataclasses.replace(p, value=round(p.value / total * 100, 1)) for p in points]
