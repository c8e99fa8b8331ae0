"""Tests for FASTA formatting and nucleotide helpers."""

import io
import math

import pytest

from transcripts2fasta.error_handler import OutputError
from transcripts2fasta.fasta import (
    LINE_WIDTH, FastaWriter, format_record, reverse_complement, wrap_sequence
)
from transcripts2fasta.models import FastaRecord


class TestReverseComplement:
    """Test cases for reverse complementing."""

    def test_basic_bases(self):
        assert reverse_complement("ATGC") == "GCAT"
        assert reverse_complement("GG") == "CC"
        assert reverse_complement("TT") == "AA"

    def test_empty(self):
        assert reverse_complement("") == ""

    def test_iupac_ambiguity_codes(self):
        """Ambiguity codes map to their standard complements."""
        assert reverse_complement("R") == "Y"
        assert reverse_complement("Y") == "R"
        assert reverse_complement("K") == "M"
        assert reverse_complement("M") == "K"
        assert reverse_complement("B") == "V"
        assert reverse_complement("V") == "B"
        assert reverse_complement("D") == "H"
        assert reverse_complement("H") == "D"
        assert reverse_complement("S") == "S"
        assert reverse_complement("W") == "W"
        assert reverse_complement("N") == "N"
        assert reverse_complement("ARYN") == "NRYT"

    def test_preserves_case(self):
        assert reverse_complement("acgtn") == "nacgt"

    def test_involution(self):
        sequence = "ACGTRYKMBDHVNSWacgt"
        assert reverse_complement(reverse_complement(sequence)) == sequence


class TestWrapSequence:
    """Test cases for line wrapping."""

    @pytest.mark.parametrize("length", [0, 1, 59, 60, 61, 119, 120, 121, 1000])
    def test_line_count_and_widths(self, length):
        sequence = ("ACGT" * 300)[:length]
        lines = wrap_sequence(sequence, 60)

        assert len(lines) == math.ceil(length / 60)
        assert all(len(line) == 60 for line in lines[:-1])
        if lines:
            assert 0 < len(lines[-1]) <= 60
        assert "".join(lines) == sequence

    def test_default_width_is_60(self):
        assert LINE_WIDTH == 60
        assert wrap_sequence("A" * 61) == ["A" * 60, "A"]

    def test_custom_width(self):
        assert wrap_sequence("ACGTACGTAC", 4) == ["ACGT", "ACGT", "AC"]

    def test_invalid_width(self):
        with pytest.raises(ValueError):
            wrap_sequence("ACGT", 0)


class TestFormatRecord:
    """Test cases for record rendering."""

    def test_header(self):
        record = FastaRecord(header="ENST00000001.3", sequence="GGATGCTT")
        text = format_record(record)

        assert text.splitlines()[0] == ">ENST00000001.3"
        assert text == ">ENST00000001.3\nGGATGCTT"

    def test_exact_multiple_has_no_trailing_break(self):
        record = FastaRecord(header="X", sequence="A" * 120)
        text = format_record(record)

        assert text == ">X\n" + "A" * 60 + "\n" + "A" * 60
        assert not text.endswith("\n")

    def test_empty_sequence(self):
        assert format_record(FastaRecord(header="X", sequence="")) == ">X"


class TestFastaWriter:
    """Test cases for the streaming writer."""

    def test_writes_records_with_terminator(self):
        handle = io.StringIO()
        writer = FastaWriter(handle)

        writer.write(FastaRecord(header="ENST00000001.3", sequence="GGATGCTT"))
        writer.write(FastaRecord(header="ENST00000002.1", sequence="A" * 61))

        assert handle.getvalue() == (
            ">ENST00000001.3\nGGATGCTT\n"
            ">ENST00000002.1\n" + "A" * 60 + "\nA\n"
        )
        assert writer.records_written == 2
        assert writer.bases_written == 69

    def test_write_failure_raises_output_error(self):
        class BrokenHandle:
            def write(self, text):
                raise OSError("disk full")

        writer = FastaWriter(BrokenHandle())
        with pytest.raises(OutputError, match="disk full"):
            writer.write(FastaRecord(header="X", sequence="A"))

    def test_invalid_line_width(self):
        with pytest.raises(ValueError):
            FastaWriter(io.StringIO(), line_width=0)
