import dataclasses
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import polars as pl

from atlas.shared.errors import PayloadError
from atlas.shared.models import CountryRecord, CountryWithEvents, PoliticalEvent, PoliticalLeader

COUNTRY_SCHEMA = {
    "id": pl.Int64,
    "code": pl.String,
    "name": pl.String,
    "capital": pl.String,
    "population": pl.Int64,
    "color": pl.String,
    "region": pl.String,
}

EVENT_SCHEMA = {
    "id": pl.Int64,
    "country_code": pl.String,
    "period": pl.String,
    "title": pl.String,
    "description": pl.String,
    "party_name": pl.String,
    "party_color": pl.String,
    "tags": pl.List(pl.String),
    "order": pl.Int64,
}

LEADER_SCHEMA = {
    "id": pl.Int64,
    "country_code": pl.String,
    "name": pl.String,
    "title": pl.String,
    "party": pl.String,
    "in_power_since": pl.String,
    "description": pl.String,
    "image_url": pl.String,
}

SCHEMAS = {
    "countries": COUNTRY_SCHEMA,
    "events": EVENT_SCHEMA,
    "leaders": LEADER_SCHEMA,
}


@dataclass
class SyncSummary:
    """What a replace_all call touched."""
    countries: int
    events: int
    leaders: int
    codes: List[str]


def _frame(rows: Iterable, schema) -> pl.DataFrame:
    return pl.from_dicts([dataclasses.asdict(r) for r in rows], schema=schema)


class CountryRecordStore:
    """
    The in-memory data store behind the HTTP API.

    Like the rest of the backend it holds flat tables rather than object graphs:
    'countries' is keyed by 'code', while 'events' and 'leaders' point back to
    their country through a 'country_code' column. Joins happen at read time,
    so an event never owns (or is owned by) a country object.
    """

    def __init__(self):
        self.tables: Dict[str, pl.DataFrame] = {
            name: pl.DataFrame(schema=schema) for name, schema in SCHEMAS.items()
        }
        self._next_country_id = 1
        self._next_event_id = 1
        self._next_leader_id = 1

    def get_table(self, name: str) -> pl.DataFrame:
        """
        Retrieves a reference to a store table.
        Raises KeyError if the table is missing to prevent silent logic failures.
        """
        if name not in self.tables:
            raise KeyError(f"Table '{name}' not found in CountryRecordStore.")
        return self.tables[name]

    def update_table(self, name: str, df: pl.DataFrame):
        """Replaces a table. Polars frames are immutable, so this swaps the reference."""
        self.tables[name] = df

    # =========================================================================
    # SECTION: READS
    # =========================================================================

    def list_countries(self) -> List[CountryRecord]:
        return [CountryRecord(**row) for row in self.get_table("countries").iter_rows(named=True)]

    def get_country(self, code: str) -> Optional[CountryRecord]:
        row_df = self.get_table("countries").filter(pl.col("code") == code)
        if row_df.is_empty():
            return None
        return CountryRecord(**row_df.row(0, named=True))

    def get_events(self, code: str) -> List[PoliticalEvent]:
        """Events for a country in display order. Ties keep their insertion order."""
        df = (
            self.get_table("events")
            .filter(pl.col("country_code") == code)
            .sort("order", maintain_order=True)
        )
        return [PoliticalEvent(**row) for row in df.iter_rows(named=True)]

    def get_leader(self, code: str) -> Optional[PoliticalLeader]:
        row_df = self.get_table("leaders").filter(pl.col("country_code") == code)
        if row_df.is_empty():
            return None
        return PoliticalLeader(**row_df.row(0, named=True))

    def get_country_with_events(self, code: str) -> Optional[CountryWithEvents]:
        country = self.get_country(code)
        if country is None:
            return None
        return CountryWithEvents(
            country=country,
            events=self.get_events(code),
            leader=self.get_leader(code),
        )

    def search_countries(self, query: str) -> List[CountryRecord]:
        """
        Case-insensitive substring match on name or code.
        An empty query means "no filter" and returns every country.
        """
        if not query:
            return self.list_countries()

        txt = query.lower()
        df = self.get_table("countries").filter(
            pl.col("name").str.to_lowercase().str.contains(txt, literal=True) |
            pl.col("code").str.to_lowercase().str.contains(txt, literal=True)
        )
        return [CountryRecord(**row) for row in df.iter_rows(named=True)]

    # =========================================================================
    # SECTION: WRITES
    # =========================================================================

    def replace_all(
        self,
        countries: Sequence[CountryRecord],
        events: Sequence[PoliticalEvent],
        leaders: Sequence[PoliticalLeader],
    ) -> SyncSummary:
        """
        Applies a sync payload.

        Semantics: additive across codes, replace-all within a code.
        Every code mentioned by the payload gets its country row upserted, its
        events replaced and its leader replaced (or cleared). Codes the payload
        does not mention are left untouched.

        The whole payload is validated before any table changes, so a rejected
        payload leaves the store exactly as it was.
        """
        self._validate_payload(countries, events, leaders)

        touched = []
        for code in [c.code for c in countries] + [e.country_code for e in events] + [l.country_code for l in leaders]:
            if code not in touched:
                touched.append(code)

        self._upsert_countries(countries)
        self._replace_children("events", events, touched)
        self._replace_children("leaders", leaders, touched)

        print(f"[Store] Synchronised {len(countries)} countries, {len(events)} events, "
              f"{len(leaders)} leaders ({len(touched)} codes touched)")
        return SyncSummary(len(countries), len(events), len(leaders), touched)

    def _validate_payload(self, countries, events, leaders):
        for country in countries:
            if not country.code:
                raise PayloadError("Country entry without a code")
            if country.population < 0:
                raise PayloadError(f"Country '{country.code}' has a negative population")

        known = set(self.get_table("countries")["code"].to_list())
        known.update(c.code for c in countries)

        for event in events:
            if event.country_code not in known:
                raise PayloadError(f"Event '{event.title}' references unknown country '{event.country_code}'")

        # The single enforcement point of the 0-or-1 leader rule.
        seen = set()
        for leader in leaders:
            if leader.country_code not in known:
                raise PayloadError(f"Leader '{leader.name}' references unknown country '{leader.country_code}'")
            if leader.country_code in seen:
                raise PayloadError(f"More than one leader for country '{leader.country_code}'")
            seen.add(leader.country_code)

    def _upsert_countries(self, countries: Sequence[CountryRecord]):
        if not countries:
            return

        current = self.get_table("countries")
        existing_ids = dict(zip(current["code"].to_list(), current["id"].to_list()))

        rows = []
        for country in countries:
            country_id = existing_ids.get(country.code)
            if country_id is None:
                country_id = self._next_country_id
                self._next_country_id += 1
                existing_ids[country.code] = country_id
            rows.append(dataclasses.replace(country, id=country_id))

        incoming = _frame(rows, COUNTRY_SCHEMA).with_row_index("_pos", offset=current.height)

        # Overwrites keep the row's original position: the smallest position seen
        # for a code wins, the last row's values win.
        merged = (
            pl.concat([current.with_row_index("_pos"), incoming], how="vertical")
            .with_columns(pl.col("_pos").min().over("code"))
            .unique(subset=["code"], keep="last")
            .sort("_pos")
            .drop("_pos")
        )
        self.update_table("countries", merged)

    def _replace_children(self, table: str, rows: Sequence, touched: List[str]):
        if not touched:
            return

        stamped = []
        for row in rows:
            if table == "events":
                stamped.append(dataclasses.replace(row, id=self._next_event_id))
                self._next_event_id += 1
            else:
                stamped.append(dataclasses.replace(row, id=self._next_leader_id))
                self._next_leader_id += 1

        kept = self.get_table(table).filter(~pl.col("country_code").is_in(list(touched)))
        self.update_table(table, pl.concat([kept, _frame(stamped, SCHEMAS[table])], how="vertical"))
