"""Shared fixtures: in-memory stores standing in for the Ensembl backends."""

from typing import Dict, List, Tuple

import pytest

from transcripts2fasta.fasta import reverse_complement
from transcripts2fasta.models import Transcript
from transcripts2fasta.stores import SequenceStore, TranscriptStore


class InMemoryTranscriptStore(TranscriptStore):
    """Transcripts held in a list, returned in insertion order."""

    def __init__(self, transcripts: List[Transcript], spliced: Dict[str, str]):
        self.transcripts = transcripts
        self.spliced = spliced
        self.biotype_queries: List[str] = []

    def fetch_by_biotype(self, biotype):
        self.biotype_queries.append(biotype)
        return [t for t in self.transcripts if t.biotype == biotype]

    def fetch_spliced_sequence(self, transcript):
        return self.spliced[transcript.stable_id]


class CannedSequenceStore(SequenceStore):
    """Returns fixed strings per (region, start, end), whatever the strand."""

    def __init__(self, ranges: Dict[Tuple[str, int, int], str]):
        self.ranges = ranges
        self.calls: List[Tuple[str, int, int, int]] = []

    def fetch_range(self, seq_region_name, start, end, strand=1, seq_region_id=None):
        self.calls.append((seq_region_name, start, end, strand))
        if end < start:
            return ""
        return self.ranges[(seq_region_name, start, end)]


class GenomeSequenceStore(SequenceStore):
    """Slices whole region sequences, clipping at the region ends."""

    def __init__(self, regions: Dict[str, str]):
        self.regions = regions
        self.calls: List[Tuple[str, int, int, int]] = []

    def fetch_range(self, seq_region_name, start, end, strand=1, seq_region_id=None):
        self.calls.append((seq_region_name, start, end, strand))
        sequence = self.regions[seq_region_name]
        start = max(start, 1)
        end = min(end, len(sequence))
        if end < start:
            return ""
        piece = sequence[start - 1:end]
        return reverse_complement(piece) if strand == -1 else piece


@pytest.fixture
def example_transcript():
    """Transcript used by the ATGC/GG/TT worked example."""
    return Transcript(
        stable_id="ENST00000001",
        version=3,
        seq_region_name="1",
        start=3,
        end=6,
        strand=1,
        biotype="protein_coding",
    )


@pytest.fixture
def canned_flanks():
    """Left flank 'GG' and right flank 'TT' around the example transcript."""
    return CannedSequenceStore({("1", 1, 2): "GG", ("1", 7, 8): "TT"})


@pytest.fixture
def transcript_store_factory():
    return InMemoryTranscriptStore


@pytest.fixture
def genome_store_factory():
    return GenomeSequenceStore


@pytest.fixture
def canned_store_factory():
    return CannedSequenceStore
