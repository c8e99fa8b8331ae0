"""Command-line interface for the transcript FASTA exporter."""

import sys
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Iterator, Tuple

import click

from .cli_utils import echo, open_output, set_quiet_mode
from .config import UNSTRANDED_POLICIES, Config, create_example_config, get_default_config_path
from .ensembl_db import EnsemblCoreDatabase, EnsemblSequenceStore, EnsemblTranscriptStore
from .ensembl_rest import EnsemblRestSequenceStore
from .error_handler import ErrorHandler
from .exporter import ExportSummary, TranscriptExporter
from .logging_config import get_logger, setup_logging
from .report import ExportReport
from .stores import SequenceStore, TranscriptStore

logger = get_logger('cli')


@contextmanager
def open_stores(cfg: Config) -> Iterator[Tuple[TranscriptStore, SequenceStore]]:
    """Connect the annotation store and the sequence store for a run.

    Sequence comes from the REST API when configured, else from the DNA
    database when fully specified, else from the annotation database.
    """
    with ExitStack() as stack:
        database = stack.enter_context(EnsemblCoreDatabase(cfg.database))

        sequence_store: SequenceStore
        if cfg.rest.enabled:
            if cfg.dna_database_config:
                logger.warning("Both a DNA database and the REST backend are set; using REST")
            rest_store = EnsemblRestSequenceStore(cfg.rest)
            rest_store.ping()
            sequence_store = rest_store
        elif cfg.dna_database_config:
            dna_database = stack.enter_context(EnsemblCoreDatabase(cfg.dna_database_config))
            sequence_store = EnsemblSequenceStore(dna_database)
        else:
            sequence_store = EnsemblSequenceStore(database)

        yield EnsemblTranscriptStore(database, sequence_store), sequence_store


def run_export(cfg: Config) -> ExportSummary:
    """Connect, export and write the optional report."""
    report = ExportReport(cfg.export.flanking_length) if cfg.export.report_file else None

    # Stores are connected before the output is opened, so a connection
    # failure leaves no partial output behind.
    with open_stores(cfg) as (transcript_store, sequence_store):
        exporter = TranscriptExporter(
            transcript_store,
            sequence_store,
            biotype=cfg.export.biotype,
            flanking_length=cfg.export.flanking_length,
            unstranded=cfg.export.unstranded,
            line_width=cfg.export.line_width,
            progress_interval=cfg.logging.progress_interval,
            report=report,
        )
        with open_output(cfg.export.output_file) as handle:
            summary = exporter.export(handle)

    if report is not None:
        path = report.write(cfg.export.report_file)
        counts = report.summary()
        echo(f"Report written to: {path}")
        logger.info(
            f"Report: {counts['records']} records, {counts['total_bases']} bp, "
            f"{counts['clipped_flanks']} with clipped flanks"
        )

    return summary


@click.command()
@click.option('--dbhost', '--host', '-h', 'dbhost', help='Annotation database host')
@click.option('--dbport', '--port', '-P', 'dbport', type=int, help='Annotation database port')
@click.option('--dbuser', '--user', '-u', 'dbuser', help='Annotation database user')
@click.option('--dbpass', '--pass', '-p', 'dbpass', help='Annotation database password')
@click.option('--dbname', '--db', '-D', 'dbname', help='Annotation (core) database name')
@click.option('--dnahost', help='DNA database host')
@click.option('--dnaport', type=int, help='DNA database port')
@click.option('--dnauser', help='DNA database user')
@click.option('--dnadbpass', help='DNA database password')
@click.option('--dnadbname', help='DNA database name')
@click.option('--dna-rest-server', help='Ensembl REST server for sequence (default https://rest.ensembl.org)')
@click.option('--dna-rest-species', help='Species name for the REST sequence backend, e.g. homo_sapiens')
@click.option('--output_file', '--output-file', '-o', 'output_file', type=click.Path(dir_okay=False),
              help='FASTA output file (default: standard output)')
@click.option('--biotype', help='Transcript biotype to export (default: protein_coding)')
@click.option('--flanking_length', '--flanking-length', 'flanking_length', type=click.IntRange(min=0),
              help='Bases of flanking sequence on each side (default: 0)')
@click.option('--unstranded', type=click.Choice(UNSTRANDED_POLICIES),
              help='How to treat transcripts with unknown strand (default: error)')
@click.option('--report', type=click.Path(dir_okay=False), help='Write a TSV manifest of exported records')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path')
@click.option('--generate-config', is_flag=True, help='Generate example configuration file')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also log to this file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress all output except errors')
def main(dbhost, dbport, dbuser, dbpass, dbname, dnahost, dnaport, dnauser, dnadbpass, dnadbname,
         dna_rest_server, dna_rest_species, output_file, biotype, flanking_length, unstranded, report,
         config, generate_config, log_file, verbose, quiet):
    """Dump transcript sequences from an Ensembl core database to FASTA.

    Each record is the spliced (exon) sequence of a transcript, optionally
    padded with flanking genomic sequence, headed by the versioned stable ID.

    Examples:
        transcripts2fasta --dbhost=ensembldb.ensembl.org --dbuser=anonymous
            --dbname=homo_sapiens_core_110_38 --output_file=pc.fa

        transcripts2fasta -h myhost -u ro -D my_core_db
            --biotype=transcribed_processed_pseudogene --flanking_length=50
    """
    if quiet and verbose:
        raise click.UsageError("Cannot use both --quiet and --verbose")

    set_quiet_mode(quiet)
    setup_logging(
        log_level='DEBUG' if verbose else 'INFO',
        log_file=log_file,
        quiet=quiet
    )

    if generate_config:
        config_path = create_example_config()
        echo(f"Generated example configuration file: {config_path}")
        sys.exit(0)

    error_handler = ErrorHandler()
    operation = "load_config"
    try:
        config_path = Path(config) if config else get_default_config_path()
        cfg = Config.from_file(config_path)
        cfg.merge_env_vars()
        cfg.merge_cli_args(
            dbhost=dbhost, dbport=dbport, dbuser=dbuser, dbpass=dbpass, dbname=dbname,
            dnahost=dnahost, dnaport=dnaport, dnauser=dnauser, dnadbpass=dnadbpass,
            dnadbname=dnadbname, dna_rest_server=dna_rest_server,
            dna_rest_species=dna_rest_species, output_file=output_file, biotype=biotype,
            flanking_length=flanking_length, unstranded=unstranded, report=report,
            log_file=log_file, verbose=verbose, quiet=quiet
        )
        cfg.validate()

        if cfg.logging.log_file and not log_file:
            setup_logging(
                log_level=cfg.logging.level,
                log_file=cfg.logging.log_file,
                colors=cfg.logging.colors,
                quiet=quiet
            )

        operation = "export"
        logger.info(
            f"Exporting {cfg.export.biotype} transcripts from {cfg.database.describe()} "
            f"with {cfg.export.flanking_length} bp flanks"
        )
        summary = run_export(cfg)
    except Exception as e:
        # Exit code follows the classified error type
        context = error_handler.handle_error(e, operation=operation)
        sys.exit(context.exit_code)

    destination = cfg.export.output_file or 'standard output'
    echo(
        f"Wrote {summary.records_written} {summary.biotype} records "
        f"({summary.bases_written} bp) to {destination}"
    )


if __name__ == '__main__':
    main()
