"""Configuration management for the transcript FASTA exporter."""

import json
import logging
import os
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import URL

from .error_handler import ConfigurationError

logger = logging.getLogger(__name__)

UNSTRANDED_POLICIES = ('forward', 'reverse', 'error')
DEFAULT_PORT = 3306


@dataclass
class DatabaseConfig:
    """Connection settings for an Ensembl MySQL database."""
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    dbname: Optional[str] = None
    driver: str = "mysql+pymysql"

    def is_complete(self) -> bool:
        """True when host, user, port and dbname are all set."""
        return bool(self.host and self.user and self.port and self.dbname)

    def missing_fields(self) -> list:
        return [name for name in ('host', 'user', 'dbname') if not getattr(self, name)]

    def url(self) -> URL:
        """Build the SQLAlchemy URL for this database."""
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port or DEFAULT_PORT,
            database=self.dbname,
        )

    def describe(self) -> str:
        """Connection string without the password, for logs."""
        return f"{self.user}@{self.host}:{self.port or DEFAULT_PORT}/{self.dbname}"


@dataclass
class RestConfig:
    """Ensembl REST sequence backend settings."""
    enabled: bool = False
    server: str = "https://rest.ensembl.org"
    species: Optional[str] = None
    timeout_seconds: int = 30
    retry_attempts: int = 3
    rate_limit_per_second: float = 15.0  # Ensembl REST allows 15 req/s per client


@dataclass
class ExportConfig:
    """What to export and where."""
    biotype: str = "protein_coding"
    flanking_length: int = 0
    output_file: Optional[str] = None
    line_width: int = 60
    unstranded: str = "error"
    report_file: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    log_file: Optional[str] = None
    colors: bool = True
    progress_interval: int = 1000


@dataclass
class Config:
    """Main configuration container."""
    database: DatabaseConfig
    dna_database: DatabaseConfig
    rest: RestConfig
    export: ExportConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def default(cls) -> 'Config':
        """Create default configuration."""
        return cls(
            database=DatabaseConfig(),
            dna_database=DatabaseConfig(),
            rest=RestConfig(),
            export=ExportConfig(),
            logging=LoggingConfig()
        )

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from JSON file."""
        if not path.exists():
            return cls.default()

        try:
            with open(path, 'r') as f:
                data = json.load(f)
            return cls(
                database=DatabaseConfig(**data.get('database', {})),
                dna_database=DatabaseConfig(**data.get('dna_database', {})),
                rest=RestConfig(**data.get('rest', {})),
                export=ExportConfig(**data.get('export', {})),
                logging=LoggingConfig(**data.get('logging', {}))
            )
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid configuration file {path}: {e}") from e

    def to_file(self, path: Path) -> None:
        """Save configuration to JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'database': asdict(self.database),
            'dna_database': asdict(self.dna_database),
            'rest': asdict(self.rest),
            'export': asdict(self.export),
            'logging': asdict(self.logging)
        }

        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

    @property
    def dna_database_config(self) -> Optional[DatabaseConfig]:
        """The separate DNA database, only when fully specified."""
        return self.dna_database if self.dna_database.is_complete() else None

    def merge_env_vars(self) -> None:
        """Merge environment variables into configuration."""
        for prefix, db in (('ENSEMBL_DB', self.database), ('ENSEMBL_DNADB', self.dna_database)):
            if os.getenv(f'{prefix}HOST'):
                db.host = os.getenv(f'{prefix}HOST')
            if os.getenv(f'{prefix}PORT'):
                try:
                    db.port = int(os.getenv(f'{prefix}PORT'))
                except ValueError as e:
                    raise ConfigurationError(f"{prefix}PORT must be an integer") from e
            if os.getenv(f'{prefix}USER'):
                db.user = os.getenv(f'{prefix}USER')
            if os.getenv(f'{prefix}PASS'):
                db.password = os.getenv(f'{prefix}PASS')
            if os.getenv(f'{prefix}NAME'):
                db.dbname = os.getenv(f'{prefix}NAME')

        # REST backend
        if os.getenv('ENSEMBL_REST_SERVER'):
            self.rest.server = os.getenv('ENSEMBL_REST_SERVER')
        if os.getenv('ENSEMBL_REST_SPECIES'):
            self.rest.species = os.getenv('ENSEMBL_REST_SPECIES')
            self.rest.enabled = True

    def merge_cli_args(self, **kwargs) -> None:
        """Merge CLI arguments into configuration. None means 'not given'."""
        mapping = {
            'dbhost': (self.database, 'host'),
            'dbport': (self.database, 'port'),
            'dbuser': (self.database, 'user'),
            'dbpass': (self.database, 'password'),
            'dbname': (self.database, 'dbname'),
            'dnahost': (self.dna_database, 'host'),
            'dnaport': (self.dna_database, 'port'),
            'dnauser': (self.dna_database, 'user'),
            'dnadbpass': (self.dna_database, 'password'),
            'dnadbname': (self.dna_database, 'dbname'),
            'biotype': (self.export, 'biotype'),
            'flanking_length': (self.export, 'flanking_length'),
            'output_file': (self.export, 'output_file'),
            'unstranded': (self.export, 'unstranded'),
            'report': (self.export, 'report_file'),
            'log_file': (self.logging, 'log_file'),
        }
        for key, (section, attr) in mapping.items():
            if kwargs.get(key) is not None:
                setattr(section, attr, kwargs[key])

        # REST settings
        if kwargs.get('dna_rest_server'):
            self.rest.server = kwargs['dna_rest_server']
        if kwargs.get('dna_rest_species'):
            self.rest.species = kwargs['dna_rest_species']
            self.rest.enabled = True

        if kwargs.get('verbose'):
            self.logging.level = 'DEBUG'
        elif kwargs.get('quiet'):
            self.logging.level = 'ERROR'

    def validate(self) -> None:
        """Fail fast on unusable settings, before any store is touched."""
        missing = self.database.missing_fields()
        if missing:
            options = ', '.join(f"--db{name}" if name != 'dbname' else "--dbname" for name in missing)
            raise ConfigurationError(f"Missing annotation database settings: {options}")

        dna = self.dna_database
        if any((dna.host, dna.port, dna.user, dna.password, dna.dbname)) and not dna.is_complete():
            missing = [name for name in ('host', 'port', 'user', 'dbname') if not getattr(dna, name)]
            logger.warning(f"Ignoring incomplete DNA database settings (missing {', '.join(missing)})")

        for label, db in (('annotation', self.database), ('DNA', self.dna_database)):
            if db.port is not None and db.port <= 0:
                raise ConfigurationError(f"Invalid {label} database port: {db.port}")

        if self.export.flanking_length < 0:
            raise ConfigurationError(
                f"Flanking length must be non-negative, got {self.export.flanking_length}"
            )
        if self.export.line_width <= 0:
            raise ConfigurationError(f"Line width must be positive, got {self.export.line_width}")
        if self.export.unstranded not in UNSTRANDED_POLICIES:
            raise ConfigurationError(
                f"Unknown unstranded policy '{self.export.unstranded}' "
                f"(expected one of {', '.join(UNSTRANDED_POLICIES)})"
            )
        if self.rest.enabled and not self.rest.species:
            raise ConfigurationError("The REST sequence backend needs --dna-rest-species")


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    locations = [
        Path.home() / '.transcripts2fasta' / 'config.json',
        Path.home() / '.config' / 'transcripts2fasta' / 'config.json',
        Path('.transcripts2fasta.json'),
        Path('transcripts2fasta.config.json')
    ]

    for path in locations:
        if path.exists():
            return path

    return Path.home() / '.transcripts2fasta' / 'config.json'


def create_example_config(path: Optional[Path] = None) -> Path:
    """Create an example configuration file."""
    if path is None:
        path = Path('transcripts2fasta.config.example.json')

    config = Config.default()

    config.database.host = "ensembldb.ensembl.org"
    config.database.user = "anonymous"
    config.database.dbname = "homo_sapiens_core_110_38"
    config.export.biotype = "protein_coding"
    config.export.flanking_length = 0

    config.to_file(path)
    return path
