"""Select the manifest chunks needed to bring the archive up to date."""

from dataclasses import dataclass

from .errors import GapError, ManifestParseError
from .local_state import LocalArchiveState
from .manifest import ChunkDescriptor, Manifest


@dataclass(frozen=True)
class Plan:
    """Chunks to fetch, in ascending order, and the range they cover."""

    resume_point: int
    latest: int
    chunks: tuple[ChunkDescriptor, ...]

    @property
    def up_to_date(self) -> bool:
        return not self.chunks

    @property
    def needs_trim(self) -> bool:
        """True when the resume point falls inside the first chunk."""
        return bool(self.chunks) and self.chunks[0].start != self.resume_point


def check_contiguity(chunks: tuple[ChunkDescriptor, ...] | list[ChunkDescriptor]) -> None:
    """Raise GapError unless every chunk starts right after the previous one ends."""
    previous_end: int | None = None
    for chunk in chunks:
        if previous_end is not None and chunk.start != previous_end + 1:
            raise GapError(previous_end, chunk.start)
        previous_end = chunk.end


def plan_chunks(manifest: Manifest, state: LocalArchiveState) -> Plan:
    """Pick every chunk that holds posts after the local archive's last one.

    Contiguity is checked over the whole manifest, not only the selected
    chunks, so a corrupt manifest is rejected before anything is fetched.
    """
    resume_point = state.resume_point
    check_contiguity(manifest.chunks)

    if resume_point > manifest.latest:
        return Plan(resume_point=resume_point, latest=manifest.latest, chunks=())

    selected = tuple(chunk for chunk in manifest.chunks if chunk.end >= resume_point)
    if not selected:
        raise ManifestParseError(
            f"Manifest reports post {manifest.latest} but no chunk covers post {resume_point}."
        )
    if selected[0].start > resume_point:
        # Local archive ends before the first published chunk begins
        raise GapError(state.last_record, selected[0].start)
    return Plan(resume_point=resume_point, latest=manifest.latest, chunks=selected)
