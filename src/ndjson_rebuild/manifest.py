"""Release manifest models and retrieval."""

import re

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config import Settings
from .errors import ManifestFetchError, ManifestParseError

# Chunk names end with their inclusive post range, e.g. "2023_01_1000_1999"
CHUNK_RANGE_RE = re.compile(r"_([0-9]+)_([0-9]+)$")


class ChunkDescriptor(BaseModel):
    """One released chunk and the post numbers it covers."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    start: int
    end: int

    @model_validator(mode="after")
    def _check_range(self) -> "ChunkDescriptor":
        if self.start > self.end:
            raise ValueError(f"chunk {self.name} starts after it ends ({self.start} > {self.end})")
        return self

    @property
    def prefix(self) -> str:
        """Name with the range suffix removed."""
        return CHUNK_RANGE_RE.sub("", self.name)

    def starting_at(self, start: int) -> "ChunkDescriptor":
        """Descriptor for the tail of this chunk beginning at ``start``."""
        return self.model_copy(update={"name": f"{self.prefix}_{start}_{self.end}", "start": start})


class Manifest(BaseModel):
    """Parsed manifest: latest published post and the ordered chunk list."""

    model_config = ConfigDict(frozen=True)

    latest: int
    chunks: tuple[ChunkDescriptor, ...]


# --- Wire format ---

class YearlyEntry(BaseModel):
    name: str
    url: str


class ManifestDocument(BaseModel):
    """manifest.json as published next to the releases."""

    last_downloaded: int = Field(alias="lastDownloaded")
    yearly: list[YearlyEntry] = Field(default_factory=list)
    monthly: list[str] = Field(default_factory=list)
    daily: list[str] = Field(default_factory=list)


def parse_chunk_range(name: str) -> tuple[int, int]:
    """Extract the (start, end) post range embedded in a chunk name."""
    match = CHUNK_RANGE_RE.search(name)
    if not match:
        raise ManifestParseError(f"Invalid entry name '{name}'.")
    return int(match.group(1)), int(match.group(2))


def _descriptor(name: str, url: str) -> ChunkDescriptor:
    start, end = parse_chunk_range(name)
    try:
        return ChunkDescriptor(name=name, url=url, start=start, end=end)
    except ValidationError as e:
        raise ManifestParseError(f"Invalid entry '{name}': {e.errors()[0]['msg']}") from e


def parse_manifest(data: object, settings: Settings) -> Manifest:
    """Turn a decoded manifest.json into a Manifest.

    Yearly chunks carry their own URL; monthly and daily chunks are
    resolved against the release base URL. Order is yearly, monthly, daily.
    """
    try:
        doc = ManifestDocument.model_validate(data)
    except ValidationError as e:
        raise ManifestParseError(f"Downloaded manifest.json is invalid: {e}") from e

    chunks = [_descriptor(entry.name, entry.url) for entry in doc.yearly]
    chunks += [_descriptor(name, settings.chunk_url(name)) for name in doc.monthly + doc.daily]
    return Manifest(latest=doc.last_downloaded, chunks=tuple(chunks))


def fetch_manifest(client: httpx.Client, settings: Settings) -> Manifest:
    """Download and parse the manifest. No retries at this layer."""
    url = settings.manifest_url
    try:
        resp = client.get(url)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        raise ManifestFetchError(f"Failed to download manifest.json from {url}: {e}") from e

    try:
        data = resp.json()
    except ValueError as e:
        raise ManifestParseError("Downloaded manifest.json is invalid.") from e
    return parse_manifest(data, settings)
