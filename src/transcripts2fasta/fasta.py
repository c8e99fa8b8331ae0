"""FASTA formatting and nucleotide helpers."""

import logging
from typing import List, TextIO

from Bio.Seq import reverse_complement as _bio_reverse_complement

from .error_handler import OutputError
from .models import FastaRecord

logger = logging.getLogger(__name__)

LINE_WIDTH = 60


def reverse_complement(sequence: str) -> str:
    """Reverse complement a nucleotide string.

    Handles the IUPAC ambiguity alphabet and preserves case
    (e.g. ``R`` <-> ``Y``, ``n`` -> ``n``).
    """
    if not sequence:
        return ""
    return str(_bio_reverse_complement(sequence))


def wrap_sequence(sequence: str, width: int = LINE_WIDTH) -> List[str]:
    """Split a sequence into lines of at most ``width`` characters.

    Every line except possibly the last is exactly ``width`` long. An empty
    sequence gives no lines.
    """
    if width <= 0:
        raise ValueError(f"Line width must be positive, got {width}")
    return [sequence[i:i + width] for i in range(0, len(sequence), width)]


def format_record(record: FastaRecord, width: int = LINE_WIDTH) -> str:
    """Render a record as header plus wrapped body, without a trailing newline."""
    lines = [f">{record.header}"]
    lines.extend(wrap_sequence(record.sequence, width))
    return "\n".join(lines)


class FastaWriter:
    """Streams FASTA records to an open text handle."""

    def __init__(self, handle: TextIO, line_width: int = LINE_WIDTH):
        """
        Initialize the writer.

        Args:
            handle: Writable text stream (file or stdout)
            line_width: Characters per sequence line
        """
        if line_width <= 0:
            raise ValueError(f"Line width must be positive, got {line_width}")
        self.handle = handle
        self.line_width = line_width
        self.records_written = 0
        self.bases_written = 0

    def write(self, record: FastaRecord) -> None:
        """Write one record followed by a line terminator."""
        try:
            self.handle.write(format_record(record, self.line_width))
            self.handle.write("\n")
        except OSError as e:
            raise OutputError(f"Failed to write {record.header}: {e}") from e
        self.records_written += 1
        self.bases_written += record.length
        logger.debug(f"Wrote {record.header} ({record.length} bp)")
