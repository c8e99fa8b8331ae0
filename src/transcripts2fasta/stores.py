"""Store interfaces used by the exporter.

The exporter only talks to these two capabilities, so it can run against the
Ensembl core database, the Ensembl REST API or an in-memory fake.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Transcript


class TranscriptStore(ABC):
    """Source of transcript annotation."""

    @abstractmethod
    def fetch_by_biotype(self, biotype: str) -> List[Transcript]:
        """Return transcripts of the given biotype in the store's native order."""

    @abstractmethod
    def fetch_spliced_sequence(self, transcript: Transcript) -> str:
        """Return the concatenated exon sequence, oriented on the transcript strand."""


class SequenceStore(ABC):
    """Source of genomic sequence."""

    @abstractmethod
    def fetch_range(self, seq_region_name: str, start: int, end: int, strand: int = 1,
                    seq_region_id: Optional[int] = None) -> str:
        """Return the sequence of a 1-based inclusive range.

        Ranges with end < start give an empty string. Strand -1 returns the
        reverse complement. ``seq_region_id`` is a hint for stores that key
        regions by internal id; others ignore it.
        """
