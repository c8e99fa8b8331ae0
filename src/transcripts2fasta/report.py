"""Tabular manifest of an export run."""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from .error_handler import OutputError
from .models import FastaRecord, Transcript


class ExportReport:
    """Collects one row per exported record and writes them as TSV."""

    COLUMNS = [
        "stable_id",
        "biotype",
        "seq_region",
        "start",
        "end",
        "strand",
        "spliced_length",
        "left_flank_length",
        "right_flank_length",
        "total_length",
    ]

    def __init__(self, flanking_length: int = 0):
        self.flanking_length = flanking_length
        self.rows: List[Dict[str, Any]] = []
        self.start_time = datetime.now()

    def add(self, transcript: Transcript, record: FastaRecord) -> None:
        """Record one exported transcript."""
        self.rows.append({
            "stable_id": transcript.stable_id_version,
            "biotype": transcript.biotype or "",
            "seq_region": transcript.seq_region_name,
            "start": transcript.start,
            "end": transcript.end,
            "strand": transcript.strand,
            "spliced_length": record.spliced_length,
            "left_flank_length": record.left_flank_length,
            "right_flank_length": record.right_flank_length,
            "total_length": record.length,
        })

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.COLUMNS)

    def write(self, output_path: Union[str, Path]) -> Path:
        """Write the manifest as tab-separated values."""
        path = Path(output_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.to_dataframe().to_csv(path, sep="\t", index=False)
        except OSError as e:
            raise OutputError(f"Cannot write report {path}: {e}") from e
        return path

    def summary(self) -> Dict[str, Any]:
        """Counts over the collected rows."""
        df = self.to_dataframe()
        if df.empty:
            return {
                "records": 0,
                "total_bases": 0,
                "clipped_flanks": 0,
                "by_strand": {},
                "duration": str(datetime.now() - self.start_time),
            }

        return {
            "records": int(len(df)),
            "total_bases": int(df["total_length"].sum()),
            "clipped_flanks": int(
                ((df["left_flank_length"] < self.flanking_length)
                 | (df["right_flank_length"] < self.flanking_length)).sum()
            ),
            "by_strand": {int(k): int(v) for k, v in df["strand"].value_counts().items()},
            "duration": str(datetime.now() - self.start_time),
        }
