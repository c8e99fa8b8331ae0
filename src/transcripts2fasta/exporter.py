"""Transcript to FASTA export."""

import logging
from dataclasses import dataclass
from typing import Optional, TextIO, Tuple

from .error_handler import UnstrandedTranscriptError
from .fasta import LINE_WIDTH, FastaWriter, reverse_complement
from .logging_config import LogTimer, ProgressLogger
from .models import (
    FORWARD_STRAND,
    REVERSE_STRAND,
    UNKNOWN_STRAND,
    FastaRecord,
    FlankRegion,
    Transcript,
)
from .report import ExportReport
from .stores import SequenceStore, TranscriptStore

logger = logging.getLogger(__name__)


@dataclass
class ExportSummary:
    """Outcome of one export run."""
    biotype: str
    flanking_length: int
    transcripts_found: int = 0
    records_written: int = 0
    bases_written: int = 0
    elapsed_seconds: float = 0.0


def flank_regions(transcript: Transcript, flank_length: int,
                  strand: Optional[int] = None) -> Tuple[FlankRegion, FlankRegion]:
    """Left and right flanking intervals of a transcript.

    Left is ``[start - L, start - 1]``, right is ``[end + 1, end + L]``. With
    L == 0 both are empty.
    """
    if flank_length < 0:
        raise ValueError(f"Flank length must be non-negative, got {flank_length}")
    if strand is None:
        strand = transcript.strand

    left = FlankRegion(
        seq_region_name=transcript.seq_region_name,
        start=transcript.start - flank_length,
        end=transcript.start - 1,
        strand=strand,
        seq_region_id=transcript.seq_region_id,
    )
    right = FlankRegion(
        seq_region_name=transcript.seq_region_name,
        start=transcript.end + 1,
        end=transcript.end + flank_length,
        strand=strand,
        seq_region_id=transcript.seq_region_id,
    )
    return left, right


def assemble_sequence(left_flank: str, spliced: str, right_flank: str, strand: int) -> str:
    """Join flanks and spliced sequence.

    On the reverse strand each flank is reverse complemented on its own; the
    spliced sequence is already oriented and is left untouched.
    """
    if strand == REVERSE_STRAND:
        return reverse_complement(left_flank) + spliced + reverse_complement(right_flank)
    return left_flank + spliced + right_flank


class TranscriptExporter:
    """Writes one FASTA record per transcript of a biotype."""

    def __init__(self,
                 transcript_store: TranscriptStore,
                 sequence_store: SequenceStore,
                 biotype: str = "protein_coding",
                 flanking_length: int = 0,
                 unstranded: str = "error",
                 line_width: int = LINE_WIDTH,
                 progress_interval: int = 1000,
                 report: Optional[ExportReport] = None):
        """
        Initialize the exporter.

        Args:
            transcript_store: Source of transcripts and spliced sequences
            sequence_store: Source of flanking sequence
            biotype: Transcript biotype to export
            flanking_length: Bases of flanking sequence per side
            unstranded: How strand 0 is treated: 'forward', 'reverse' or 'error'
            line_width: Sequence characters per FASTA line
            progress_interval: Log progress every this many transcripts
            report: Optional run report collecting one row per record
        """
        if flanking_length < 0:
            raise ValueError(f"Flanking length must be non-negative, got {flanking_length}")
        if unstranded not in ('forward', 'reverse', 'error'):
            raise ValueError(f"Unknown unstranded policy: {unstranded}")

        self.transcript_store = transcript_store
        self.sequence_store = sequence_store
        self.biotype = biotype
        self.flanking_length = flanking_length
        self.unstranded = unstranded
        self.line_width = line_width
        self.progress_interval = progress_interval
        self.report = report

    def orientation(self, transcript: Transcript) -> int:
        """Strand used for flank lookup and assembly."""
        if transcript.strand in (FORWARD_STRAND, REVERSE_STRAND):
            return transcript.strand

        if transcript.strand == UNKNOWN_STRAND and self.unstranded != 'error':
            logger.warning(
                f"{transcript.stable_id_version} has unknown strand, "
                f"treating it as {self.unstranded}"
            )
            return FORWARD_STRAND if self.unstranded == 'forward' else REVERSE_STRAND

        raise UnstrandedTranscriptError(
            f"Transcript {transcript.stable_id_version} has strand {transcript.strand}; "
            f"use --unstranded forward|reverse to export it"
        )

    def _fetch_flank(self, region: FlankRegion) -> str:
        """Literal forward-strand sequence of a flank; orientation is applied on assembly."""
        if region.is_empty:
            return ""
        return self.sequence_store.fetch_range(
            region.seq_region_name, region.start, region.end, FORWARD_STRAND,
            seq_region_id=region.seq_region_id,
        )

    def build_record(self, transcript: Transcript) -> FastaRecord:
        """Build the FASTA record of one transcript."""
        strand = self.orientation(transcript)
        left_region, right_region = flank_regions(transcript, self.flanking_length, strand)

        left_flank = self._fetch_flank(left_region)
        right_flank = self._fetch_flank(right_region)
        spliced = self.transcript_store.fetch_spliced_sequence(transcript)

        if len(left_flank) < left_region.length or len(right_flank) < right_region.length:
            logger.debug(
                f"{transcript.stable_id_version}: flanks clipped to "
                f"{len(left_flank)}/{len(right_flank)} bp"
            )

        return FastaRecord(
            header=transcript.stable_id_version,
            sequence=assemble_sequence(left_flank, spliced, right_flank, strand),
            spliced_length=len(spliced),
            left_flank_length=len(left_flank),
            right_flank_length=len(right_flank),
        )

    def export(self, handle: TextIO) -> ExportSummary:
        """Export every matching transcript to ``handle``, in store order."""
        summary = ExportSummary(biotype=self.biotype, flanking_length=self.flanking_length)
        writer = FastaWriter(handle, line_width=self.line_width)

        with LogTimer(f"Export of {self.biotype} transcripts", logger) as timer:
            transcripts = self.transcript_store.fetch_by_biotype(self.biotype)
            summary.transcripts_found = len(transcripts)

            if not transcripts:
                logger.warning(f"No transcripts with biotype '{self.biotype}'")

            progress = ProgressLogger(
                logger, len(transcripts), operation="Exporting", interval=self.progress_interval
            )
            for transcript in transcripts:
                record = self.build_record(transcript)
                writer.write(record)
                if self.report is not None:
                    self.report.add(transcript, record)
                progress.update(transcript.stable_id_version)

            if transcripts:
                progress.complete()

        summary.records_written = writer.records_written
        summary.bases_written = writer.bases_written
        summary.elapsed_seconds = timer.elapsed
        return summary
