import copy
import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

import rtoml

from atlas.client.admin.validation import (
    CHART_SECTIONS, ChartWarning, FieldError, chart_warnings, leader_is_empty,
    normalize_points, validate_draft,
)
from atlas.client.dataset import StaticCountryDataset
from atlas.client.network_client import NetworkClient
from atlas.client.reconciler import DatasetReconciler
from atlas.shared.errors import DuplicateCountryCodeError, TransportFailure
from atlas.shared.models import (
    CountryData, CountryWithEvents, DataPoint, Demographics, PoliticalEvent,
    PoliticalLeader, Statistics,
)

NEW_SENTINEL = "new"

BASIC_FIELDS = ("code", "name", "capital", "population", "region", "flag_coordinates")


class PublishStatus(Enum):
    PUBLISHED = "published"
    INVALID = "invalid"           # validation failed, nothing written
    SAVE_FAILED = "save_failed"   # module could not be written
    SYNC_FAILED = "sync_failed"   # module written, but the store was not updated


@dataclass
class PublishResult:
    status: PublishStatus
    message: str
    errors: List[FieldError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is PublishStatus.PUBLISHED


def _points(*pairs) -> List[DataPoint]:
    return [DataPoint(name, 0.0) for name in pairs]


def country_template(code: str = "") -> CountryData:
    """Zero-valued draft used by the create flow."""
    return CountryData(
        code=code,
        name="",
        capital="",
        population=0,
        region="",
        flag_coordinates=(0.0, 0.0),
        leader=PoliticalLeader(country_code=code, name="", title="", party="",
                               in_power_since="", description=""),
        demographics=Demographics(
            age_groups=_points("0-14", "15-24", "25-54", "55-64", "65+"),
            religions=_points("Religion 1"),
            urban_rural=_points("Urban", "Rural"),
            education_levels=_points("Primary", "Secondary", "Tertiary", "None"),
        ),
        statistics=Statistics(
            gdp_sectors=_points("Agriculture", "Industry", "Services"),
            employment=_points("Agriculture", "Industry", "Services"),
            trade=_points("Partner 1", "Partner 2"),
            spending=_points("Category 1", "Category 2"),
        ),
        events=[],
    )


def render_module(draft: CountryData) -> str:
    """Serialises a draft into the authored module format (TOML). An empty leader is left out."""
    draft = copy.deepcopy(draft)
    if leader_is_empty(draft.leader):
        draft.leader = None
    return f"# {draft.name} Country Data\n\n" + rtoml.dumps(draft.to_authored(), pretty=True)


class AdminEditSession:
    """
    An in-memory draft of one country's authored record.

    The draft is a private copy: nothing outside the session changes until
    'publish' writes the module and syncs the store.
    """

    def __init__(self, draft: CountryData, dataset: StaticCountryDataset,
                 client: NetworkClient, reconciler: DatasetReconciler, is_new: bool):
        self.draft = draft
        self.dataset = dataset
        self.client = client
        self.reconciler = reconciler
        self.is_new = is_new
        if self.draft.leader is None:
            self.draft.leader = country_template(draft.code).leader

    @classmethod
    def open(cls, identifier: str, dataset: StaticCountryDataset, client: NetworkClient,
             reconciler: DatasetReconciler) -> "AdminEditSession":
        """
        'new' starts an empty draft; a known code edits a copy of its authored
        module; an unknown code starts an empty draft pre-filled with that code.
        """
        if identifier != NEW_SENTINEL:
            existing = dataset.get_by_code(identifier)
            if existing is not None:
                return cls(copy.deepcopy(existing), dataset, client, reconciler, is_new=False)
            return cls(country_template(identifier), dataset, client, reconciler, is_new=True)
        return cls(country_template(), dataset, client, reconciler, is_new=True)

    @classmethod
    def from_store_record(cls, record: CountryWithEvents, dataset: StaticCountryDataset,
                          client: NetworkClient, reconciler: DatasetReconciler) -> "AdminEditSession":
        """
        Seeds a draft for a country the store knows but no authored module
        describes yet. Chart data starts from the template.
        """
        country = record.country
        draft = country_template(country.code)
        draft.name = country.name
        draft.capital = country.capital
        draft.population = country.population
        draft.region = country.region or ""
        draft.events = [dataclasses.replace(e, id=0) for e in record.events]
        if record.leader is not None:
            draft.leader = dataclasses.replace(record.leader, id=0)
        return cls(draft, dataset, client, reconciler, is_new=True)

    # =========================================================================
    # SECTION: DRAFT EDITING
    # =========================================================================

    def set_field(self, name: str, value: Any):
        if name not in BASIC_FIELDS:
            raise KeyError(f"Unknown country field '{name}'")
        if name == "population":
            value = int(value or 0)
        elif name == "flag_coordinates":
            value = (float(value[0]), float(value[1]))
        setattr(self.draft, name, value)

    def set_leader_field(self, name: str, value: Optional[str]):
        if name not in ("name", "title", "party", "in_power_since", "description", "image_url"):
            raise KeyError(f"Unknown leader field '{name}'")
        setattr(self.draft.leader, name, value)

    def set_chart(self, section: str, category: str, points: List[DataPoint]):
        block = self._chart_block(section, category)
        setattr(block, category, list(points))

    def set_events(self, events: List[PoliticalEvent], renumber: bool = False):
        """Replaces the timeline. With 'renumber', 'order' follows list position."""
        events = [dataclasses.replace(e, country_code=self.draft.code) for e in events]
        if renumber:
            events = [dataclasses.replace(e, order=i) for i, e in enumerate(events, start=1)]
        self.draft.events = events

    def normalize(self, section: str, category: str):
        block = self._chart_block(section, category)
        setattr(block, category, normalize_points(getattr(block, category)))

    def _chart_block(self, section: str, category: str):
        if category not in CHART_SECTIONS.get(section, ()):
            raise KeyError(f"Unknown chart '{section}.{category}'")
        return getattr(self.draft, section)

    # =========================================================================
    # SECTION: VALIDATION & PUBLISH
    # =========================================================================

    def validate(self) -> List[FieldError]:
        return validate_draft(self.draft)

    def chart_warnings(self) -> List[ChartWarning]:
        return chart_warnings(self.draft)

    @property
    def module_path(self) -> str:
        return f"countries/{self.draft.code}.toml"

    def render_module(self) -> str:
        return render_module(self.draft)

    async def publish(self) -> PublishResult:
        errors = self.validate()
        if errors:
            return PublishResult(PublishStatus.INVALID, "Please fix the highlighted errors before saving.", errors)

        print(f"[AdminEditSession] Publishing {self.module_path}...")
        try:
            ack = await self.client.write_country_file(self.module_path, self.render_module())
        except TransportFailure as e:
            return PublishResult(PublishStatus.SAVE_FAILED, f"There was an error saving the country data: {e}")
        if not ack.get("success"):
            return PublishResult(PublishStatus.SAVE_FAILED, ack.get("message") or "Save failed")

        self.is_new = False
        try:
            self.dataset.reload()
        except DuplicateCountryCodeError as e:
            return PublishResult(PublishStatus.SYNC_FAILED, f"The country was saved but could not be loaded: {e}")

        result = await self.reconciler.sync()
        if not result.success:
            return PublishResult(
                PublishStatus.SYNC_FAILED,
                f"The country was saved but could not be synced with the backend: {result.message}",
            )

        return PublishResult(PublishStatus.PUBLISHED, f"{self.draft.name} has been saved and synced successfully.")
