"""Ensembl core database backend.

Reads transcripts, exons and DNA straight from the MySQL tables of an Ensembl
core (or DNA-only) database through SQLAlchemy.
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import DatabaseConfig
from .error_handler import QueryError, SequenceFetchError, StoreConnectionError
from .fasta import reverse_complement
from .models import Transcript
from .stores import SequenceStore, TranscriptStore

logger = logging.getLogger(__name__)


class EnsemblCoreDatabase:
    """A single held connection to an Ensembl database."""

    def __init__(self, config: Optional[DatabaseConfig] = None, engine: Optional[Engine] = None):
        """Initialize the database handle.

        Args:
            config: Connection settings, used to build the engine
            engine: Ready-made engine (takes precedence over config)
        """
        if config is None and engine is None:
            raise ValueError("Either a database config or an engine is required")
        self.config = config
        self.engine = engine
        self._connection: Optional[Connection] = None

    @property
    def name(self) -> str:
        if self.config is not None:
            return self.config.describe()
        return str(self.engine.url)

    def connect(self) -> 'EnsemblCoreDatabase':
        """Open the connection and check that the server answers."""
        if self._connection is not None:
            return self
        try:
            if self.engine is None:
                self.engine = create_engine(self.config.url(), pool_pre_ping=True)
            self._connection = self.engine.connect()
            self._connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            self.close()
            raise StoreConnectionError(f"Cannot connect to {self.name}: {e}") from e

        logger.info(f"Connected to {self.name}")
        return self

    def close(self) -> None:
        """Release the connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self.engine is not None and self.config is not None:
            self.engine.dispose()

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def fetch_all(self, sql: str, **params) -> list:
        """Run a query and return all rows. SQLAlchemy errors propagate."""
        if self._connection is None:
            self.connect()
        return self._connection.execute(text(sql), params).fetchall()


class EnsemblSequenceStore(SequenceStore):
    """Genomic sequence from the ``dna`` and ``assembly`` tables."""

    SEQ_REGION_SQL = """
        SELECT sr.seq_region_id, sr.length
        FROM seq_region sr
        JOIN coord_system cs ON cs.coord_system_id = sr.coord_system_id
        WHERE sr.name = :name
          AND cs.attrib LIKE '%default_version%'
        ORDER BY cs.rank
        LIMIT 1
    """

    SEQ_REGION_BY_ID_SQL = """
        SELECT seq_region_id, length, name
        FROM seq_region
        WHERE seq_region_id = :seq_region_id
    """

    DNA_SQL = """
        SELECT substr(sequence, :start, :length)
        FROM dna
        WHERE seq_region_id = :seq_region_id
    """

    ASSEMBLY_SQL = """
        SELECT cmp_seq_region_id, asm_start, asm_end, cmp_start, cmp_end, ori
        FROM assembly
        WHERE asm_seq_region_id = :seq_region_id
          AND asm_end >= :start
          AND asm_start <= :end
        ORDER BY asm_start
    """

    def __init__(self, database: EnsemblCoreDatabase):
        self.database = database
        self._seq_regions: Dict[str, Tuple[int, int]] = {}
        self._seq_regions_by_id: Dict[int, Optional[Tuple[int, int]]] = {}

    def _seq_region(self, name: str, seq_region_id: Optional[int] = None) -> Tuple[int, int]:
        """Resolve a seq region to (seq_region_id, length).

        An id hint is used when this database holds a region with that id and
        name; otherwise the name is looked up on the default coord systems.
        """
        if seq_region_id is not None:
            if seq_region_id not in self._seq_regions_by_id:
                rows = self.database.fetch_all(self.SEQ_REGION_BY_ID_SQL, seq_region_id=seq_region_id)
                if rows and rows[0][2] == name:
                    self._seq_regions_by_id[seq_region_id] = (int(rows[0][0]), int(rows[0][1]))
                else:
                    logger.debug(
                        f"seq_region_id {seq_region_id} is not '{name}' in {self.database.name}; "
                        f"looking up by name"
                    )
                    self._seq_regions_by_id[seq_region_id] = None
            region = self._seq_regions_by_id[seq_region_id]
            if region is not None:
                return region

        if name not in self._seq_regions:
            rows = self.database.fetch_all(self.SEQ_REGION_SQL, name=name)
            if not rows:
                raise SequenceFetchError(f"Unknown seq region '{name}' in {self.database.name}")
            self._seq_regions[name] = (int(rows[0][0]), int(rows[0][1]))
        return self._seq_regions[name]

    def fetch_range(self, seq_region_name: str, start: int, end: int, strand: int = 1,
                    seq_region_id: Optional[int] = None) -> str:
        if end < start:
            return ""

        try:
            seq_region_id, length = self._seq_region(seq_region_name, seq_region_id)

            clipped_start = max(start, 1)
            clipped_end = min(end, length)
            if (clipped_start, clipped_end) != (start, end):
                logger.debug(
                    f"Clipped {seq_region_name}:{start}-{end} to "
                    f"{clipped_start}-{clipped_end} (region length {length})"
                )
            if clipped_end < clipped_start:
                return ""

            sequence = self._fetch_dna(seq_region_id, clipped_start, clipped_end)
        except SQLAlchemyError as e:
            raise SequenceFetchError(
                f"Failed to fetch {seq_region_name}:{start}-{end}: {e}"
            ) from e

        if strand == -1:
            return reverse_complement(sequence)
        return sequence

    def _fetch_dna(self, seq_region_id: int, start: int, end: int) -> str:
        """Forward-strand sequence of a region, projecting through the assembly if needed."""
        rows = self.database.fetch_all(
            self.DNA_SQL, seq_region_id=seq_region_id, start=start, length=end - start + 1
        )
        if rows:
            return (rows[0][0] or "").upper()

        components = self.database.fetch_all(
            self.ASSEMBLY_SQL, seq_region_id=seq_region_id, start=start, end=end
        )
        if not components:
            logger.debug(f"No sequence or assembly for seq_region_id {seq_region_id}")

        pieces: List[str] = []
        position = start
        for cmp_id, asm_start, asm_end, cmp_start, cmp_end, ori in components:
            overlap_start = max(position, asm_start)
            overlap_end = min(end, asm_end)
            if overlap_end < overlap_start:
                continue

            if overlap_start > position:
                pieces.append("N" * (overlap_start - position))

            if ori == -1:
                piece = reverse_complement(self._fetch_dna(
                    cmp_id,
                    cmp_end - (overlap_end - asm_start),
                    cmp_end - (overlap_start - asm_start),
                ))
            else:
                piece = self._fetch_dna(
                    cmp_id,
                    cmp_start + (overlap_start - asm_start),
                    cmp_start + (overlap_end - asm_start),
                )
            pieces.append(piece)
            position = overlap_end + 1

        # Gaps between (or after) components
        if position <= end:
            pieces.append("N" * (end - position + 1))

        return "".join(pieces)


class EnsemblTranscriptStore(TranscriptStore):
    """Transcripts and their exons from an Ensembl core database."""

    TRANSCRIPT_SQL = """
        SELECT t.transcript_id, t.stable_id, t.version, sr.name, t.seq_region_id,
               t.seq_region_start, t.seq_region_end, t.seq_region_strand, t.biotype
        FROM transcript t
        JOIN seq_region sr ON sr.seq_region_id = t.seq_region_id
        WHERE t.biotype = :biotype
          AND t.is_current = 1
        ORDER BY t.transcript_id
    """

    EXON_SQL = """
        SELECT sr.name, e.seq_region_id, e.seq_region_start, e.seq_region_end, e.seq_region_strand
        FROM exon e
        JOIN exon_transcript et ON et.exon_id = e.exon_id
        JOIN seq_region sr ON sr.seq_region_id = e.seq_region_id
        WHERE et.transcript_id = :transcript_id
        ORDER BY et.rank
    """

    def __init__(self, database: EnsemblCoreDatabase, sequence_store: SequenceStore):
        """
        Args:
            database: Annotation database
            sequence_store: Where exon sequence is read from (the DNA database
                when one is attached, else the annotation database itself)
        """
        self.database = database
        self.sequence_store = sequence_store

    def fetch_by_biotype(self, biotype: str) -> List[Transcript]:
        try:
            rows = self.database.fetch_all(self.TRANSCRIPT_SQL, biotype=biotype)
        except SQLAlchemyError as e:
            raise QueryError(f"Transcript query for biotype '{biotype}' failed: {e}") from e

        transcripts = [
            Transcript(
                dbid=row[0],
                stable_id=row[1],
                version=row[2],
                seq_region_name=row[3],
                seq_region_id=row[4],
                start=int(row[5]),
                end=int(row[6]),
                strand=int(row[7]),
                biotype=row[8],
            )
            for row in rows
        ]
        logger.info(f"Found {len(transcripts)} {biotype} transcripts in {self.database.name}")
        return transcripts

    def fetch_spliced_sequence(self, transcript: Transcript) -> str:
        if transcript.dbid is None:
            raise QueryError(f"Transcript {transcript.stable_id_version} has no database id")

        try:
            exons = self.database.fetch_all(self.EXON_SQL, transcript_id=transcript.dbid)
        except SQLAlchemyError as e:
            raise QueryError(
                f"Exon query for {transcript.stable_id_version} failed: {e}"
            ) from e

        if not exons:
            raise QueryError(f"Transcript {transcript.stable_id_version} has no exons")

        return "".join(
            self.sequence_store.fetch_range(
                name, int(start), int(end), int(strand), seq_region_id=seq_region_id
            )
            for name, seq_region_id, start, end, strand in exons
        )
