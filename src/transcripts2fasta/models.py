"""Data models for the transcript FASTA exporter."""

from dataclasses import dataclass
from typing import Optional

FORWARD_STRAND = 1
REVERSE_STRAND = -1
UNKNOWN_STRAND = 0


@dataclass
class Transcript:
    """A transcript as returned by the annotation store.

    Coordinates are 1-based and inclusive on the named seq region.
    """

    stable_id: str
    seq_region_name: str
    start: int
    end: int
    strand: int
    version: Optional[int] = None
    biotype: Optional[str] = None
    dbid: Optional[int] = None  # internal transcript_id in the core database
    seq_region_id: Optional[int] = None

    @property
    def stable_id_version(self) -> str:
        """Get stable ID with version."""
        if self.version is None:
            return self.stable_id
        return f"{self.stable_id}.{self.version}"

    @property
    def length(self) -> int:
        """Genomic extent of the transcript."""
        return self.end - self.start + 1


@dataclass
class FlankRegion:
    """Genomic interval next to a transcript. Empty when end < start.

    ``strand`` is the orientation the flank is emitted in; the interval itself
    is always read from the forward strand.
    """

    seq_region_name: str
    start: int
    end: int
    strand: int
    seq_region_id: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    @property
    def length(self) -> int:
        return max(0, self.end - self.start + 1)


@dataclass
class FastaRecord:
    """A single FASTA record ready to be written."""

    header: str
    sequence: str
    spliced_length: int = 0
    left_flank_length: int = 0
    right_flank_length: int = 0

    @property
    def length(self) -> int:
        return len(self.sequence)
