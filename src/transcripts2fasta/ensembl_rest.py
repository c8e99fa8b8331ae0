"""Sequence store backed by the Ensembl REST API."""

import logging
import time
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import __version__
from .config import RestConfig
from .error_handler import SequenceFetchError, StoreConnectionError
from .stores import SequenceStore

logger = logging.getLogger(__name__)


class EnsemblRestSequenceStore(SequenceStore):
    """Fetches genomic ranges from ``/sequence/region``."""

    REGION_ENDPOINT = "/sequence/region/{species}/{region}:{start}..{end}:{strand}"
    PING_ENDPOINT = "/info/ping"

    def __init__(self, config: RestConfig, session: Optional[requests.Session] = None):
        """Initialize the REST sequence store.

        Args:
            config: REST settings (server, species, timeout, retries, rate limit)
            session: Optional pre-built session, mainly for tests
        """
        if not config.species:
            raise ValueError("A species is required for the Ensembl REST backend")

        self.config = config
        self.server = config.server.rstrip('/')
        self.timeout = config.timeout_seconds

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=config.retry_attempts,
                backoff_factor=1,
                status_forcelist=[429, 500, 502, 503, 504],
                respect_retry_after_header=True,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session
        self.session.headers.update({
            'User-Agent': f'transcripts2fasta/{__version__}',
            'Content-Type': 'text/plain',
        })

        # Rate limiting
        self.last_request_time = 0.0
        self.rate_limit = config.rate_limit_per_second

    @property
    def name(self) -> str:
        return f"{self.server} ({self.config.species})"

    def _rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        if self.rate_limit <= 0:
            return
        current_time = time.time()
        time_since_last = current_time - self.last_request_time
        min_interval = 1.0 / self.rate_limit

        if time_since_last < min_interval:
            time.sleep(min_interval - time_since_last)

        self.last_request_time = time.time()

    def ping(self) -> None:
        """Check that the server is reachable."""
        try:
            response = self.session.get(
                self.server + self.PING_ENDPOINT,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise StoreConnectionError(f"Cannot reach Ensembl REST server {self.server}: {e}") from e
        logger.info(f"Connected to {self.name}")

    def fetch_range(self, seq_region_name: str, start: int, end: int, strand: int = 1,
                    seq_region_id: Optional[int] = None) -> str:
        if end < start:
            return ""

        # The server rejects positions below 1; the end is checked server side
        start = max(start, 1)
        if end < start:
            return ""

        url = self.server + self.REGION_ENDPOINT.format(
            species=self.config.species,
            region=seq_region_name,
            start=start,
            end=end,
            strand=-1 if strand == -1 else 1,
        )

        self._rate_limit()

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SequenceFetchError(
                f"Failed to fetch {seq_region_name}:{start}-{end} from {self.server}: {e}"
            ) from e

        sequence = response.text.strip().upper()
        logger.debug(f"Fetched {seq_region_name}:{start}-{end}:{strand} ({len(sequence)} bp)")
        return sequence
