# ABOUTME: Local gazetteer index over a GeoNames-format tab-separated dataset.
# ABOUTME: Parses the dataset once, scores name/alternate-name partial matches, and picks localized names.

import asyncio
import logging
import math
import re
import threading
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path

from src.config import DEFAULT_TIMEZONE
from src.errors import IndexBuildError
from src.models import GeoCandidate

logger = logging.getLogger(__name__)

MIN_COLUMNS = 19

# GeoNames column positions
COL_NAME = 1
COL_ASCIINAME = 2
COL_ALTERNATENAMES = 3
COL_LATITUDE = 4
COL_LONGITUDE = 5
COL_FEATURE_CLASS = 6
COL_FEATURE_CODE = 7
COL_ADMIN1_CODE = 10
COL_POPULATION = 14
COL_TIMEZONE = 17

FEATURE_CLASS_ADMIN = "A"
FEATURE_CLASS_POPULATED = "P"

CATEGORY_BONUS = {
    ("class", FEATURE_CLASS_POPULATED): 40,
    ("class", FEATURE_CLASS_ADMIN): 60,
    ("code", "PPLC"): 80,
    ("code", "PPLA"): 60,
    ("code", "ADM1"): 70,
}

_CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u9fff]")
_LINE_RE = re.compile(r"\r?\n")


@dataclass(frozen=True, slots=True)
class GazetteerRow:
    name: str
    asciiname: str
    alternatenames: str
    latitude: float
    longitude: float
    feature_class: str
    feature_code: str
    admin1_code: str
    population: int = 0
    timezone: str = DEFAULT_TIMEZONE


def normalize_place_query(text: str) -> str:
    return unicodedata.normalize("NFKC", text).strip()


def has_cjk(text: str) -> bool:
    return _CJK_RE.search(text) is not None


def pick_best_localized_name(name: str, alternatenames: str, query: str) -> str:
    """Choose the display name for a row.

    A CJK query prefers the first CJK alternate name containing it; otherwise the first
    CJK alternate name wins; otherwise the primary name.
    """
    if not alternatenames:
        return name
    alts = alternatenames.split(",")
    if has_cjk(query):
        for alt in alts:
            if alt and query in alt and has_cjk(alt):
                return alt
    for alt in alts:
        if alt and has_cjk(alt):
            return alt
    return name


def _parse_population(raw: str) -> int:
    try:
        population = int(raw)
    except ValueError:
        return 0
    return max(population, 0)


def parse_row(line: str, default_timezone: str = DEFAULT_TIMEZONE) -> GazetteerRow | None:
    """Parse one dataset line. Returns None for comments, short lines, and bad coordinates."""
    if not line or line.startswith("#"):
        return None
    cols = line.split("\t")
    if len(cols) < MIN_COLUMNS:
        return None
    try:
        latitude = float(cols[COL_LATITUDE])
        longitude = float(cols[COL_LONGITUDE])
    except ValueError:
        return None
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return None
    return GazetteerRow(
        name=cols[COL_NAME],
        asciiname=cols[COL_ASCIINAME],
        alternatenames=cols[COL_ALTERNATENAMES],
        latitude=latitude,
        longitude=longitude,
        feature_class=cols[COL_FEATURE_CLASS],
        feature_code=cols[COL_FEATURE_CODE],
        admin1_code=cols[COL_ADMIN1_CODE],
        population=_parse_population(cols[COL_POPULATION]),
        timezone=cols[COL_TIMEZONE] or default_timezone,
    )


def score_row(row: GazetteerRow, query: str) -> float:
    """Score how well a row matches a normalized query. Higher is better."""

    def score_field(value: str) -> int:
        if not value:
            return 0
        if value == query:
            return 1000
        if value.startswith(query):
            return 700
        if query in value:
            return 500
        return 0

    score: float = max(score_field(row.name), score_field(row.asciiname))
    if row.alternatenames:
        if query in row.alternatenames.split(","):
            score = max(score, 950)
        elif query in row.alternatenames:
            score = max(score, 600)

    score += CATEGORY_BONUS.get(("class", row.feature_class), 0)
    score += CATEGORY_BONUS.get(("code", row.feature_code), 0)

    if row.population > 0:
        score += min(200, math.log10(row.population + 1) * 30)
    return score


@dataclass(frozen=True)
class GazetteerIndex:
    """Read-only rows in dataset order plus a lookup of admin1 code to localized name."""

    rows: tuple[GazetteerRow, ...]
    admin1_names: dict[str, str] = field(default_factory=dict)
    country: str | None = None
    country_code: str | None = None

    def search(self, query: str, limit: int) -> list[GeoCandidate]:
        """Return up to `limit` candidates whose names contain the query, best first."""
        query = normalize_place_query(query)
        if not query or limit <= 0:
            return []

        hits: list[tuple[GazetteerRow, float]] = []
        for row in self.rows:
            if row.feature_class not in (FEATURE_CLASS_ADMIN, FEATURE_CLASS_POPULATED):
                continue
            if not (
                (row.name and query in row.name)
                or (row.asciiname and query in row.asciiname)
                or (row.alternatenames and query in row.alternatenames)
            ):
                continue
            hits.append((row, score_row(row, query)))

        # sort is stable, so ties keep dataset order
        hits.sort(key=lambda hit: hit[1], reverse=True)

        return [
            GeoCandidate(
                name=pick_best_localized_name(row.name, row.alternatenames, query),
                country=self.country,
                country_code=self.country_code,
                admin1=self.admin1_names.get(row.admin1_code) if row.admin1_code else None,
                latitude=row.latitude,
                longitude=row.longitude,
                timezone=row.timezone or DEFAULT_TIMEZONE,
            )
            for row, _ in hits[:limit]
        ]


def parse_dataset(
    text: str,
    default_timezone: str = DEFAULT_TIMEZONE,
    country: str | None = None,
    country_code: str | None = None,
) -> GazetteerIndex:
    rows: list[GazetteerRow] = []
    admin1_names: dict[str, str] = {}
    for line in _LINE_RE.split(text):
        row = parse_row(line, default_timezone)
        if row is None:
            continue
        rows.append(row)
        if row.feature_class == FEATURE_CLASS_ADMIN and row.feature_code == "ADM1" and row.admin1_code:
            admin1_names[row.admin1_code] = pick_best_localized_name(row.name, row.alternatenames, "")
    return GazetteerIndex(rows=tuple(rows), admin1_names=admin1_names, country=country, country_code=country_code)


def load_index(
    path: Path,
    default_timezone: str = DEFAULT_TIMEZONE,
    country: str | None = None,
    country_code: str | None = None,
) -> GazetteerIndex:
    """Read and index the dataset file. Raises IndexBuildError if it cannot be read."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IndexBuildError(str(path), str(e)) from e
    index = parse_dataset(text, default_timezone, country, country_code)
    logger.info("Loaded gazetteer %s: %d rows, %d admin1 names", path, len(index.rows), len(index.admin1_names))
    return index


class GazetteerStore:
    """Owns the lazily built gazetteer index for the lifetime of the process.

    The first caller builds the index; concurrent callers block on the same lock until
    that build finishes. A failed build caches nothing, so the next call retries.
    """

    def __init__(
        self,
        path: Path,
        default_timezone: str = DEFAULT_TIMEZONE,
        country: str | None = None,
        country_code: str | None = None,
    ):
        self.path = Path(path)
        self.default_timezone = default_timezone
        self.country = country
        self.country_code = country_code
        self.build_count = 0
        self._index: GazetteerIndex | None = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._index is not None

    def get_index(self) -> GazetteerIndex:
        index = self._index
        if index is not None:
            return index
        with self._lock:
            if self._index is None:
                self._index = load_index(self.path, self.default_timezone, self.country, self.country_code)
                self.build_count += 1
            return self._index

    def reset(self) -> None:
        """Forget the built index so the next search rebuilds it."""
        with self._lock:
            self._index = None

    async def search(self, place: str, limit: int) -> list[GeoCandidate]:
        """Search the index, building it off the event loop on first use."""
        if not normalize_place_query(place):
            return []
        index = self._index
        if index is None:
            index = await asyncio.to_thread(self.get_index)
        return index.search(place, limit)
