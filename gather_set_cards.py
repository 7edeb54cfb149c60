# /// script
# requires-python = "==3.12.*"
# dependencies = [
#   "httpx",
#   "tqdm",
#   "humanize"
# ]
# ///

"""
Collects card data for a list of trading-card sets from the card-catalog API.
It's server-friendly, in that it makes synchronous requests one set at a time, paced by a fixed pause,
  and one failing set never stops the rest of the batch.

Usage:
  uv run ./gather_set_cards.py --codes-file ./sets_codes.txt --output-dir "../set_data_json_txt"

Args:
  --codes-file (optional) -- one set code per line; defaults to `sets_codes.txt`
  --output-dir (optional) -- defaults to `set_data_json_txt`
  --interval (optional) -- seconds between requests; defaults to 0.5
  --timeout (optional) -- per-request timeout in seconds; defaults to 30
  --max-tries (optional) -- attempts per set; defaults to 1 (no retries)
  --base-url (optional) -- card-search endpoint

Outputs (in the output dir):
  - {CODE}_cards.json and {CODE}_cards.txt for each set fetched
  - all_sets_combined.json and all_sets_combined.txt
  - run_metadata.txt

Exit codes:
  0 -- every set fetched and written
  1 -- all artifacts written, but one or more sets could not be fetched
  2 -- aborted (bad option value, codes file unreadable, or an output file could not be written)
"""

import argparse
import contextlib
import json
import logging
import os
import sys
import time
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import NamedTuple
from urllib.parse import quote

import httpx
import humanize
from tqdm import tqdm

## setup logging
log_level_name: str = os.getenv('LOG_LEVEL', 'INFO').upper()
log_level = getattr(
    logging, log_level_name, logging.INFO
)  # maps the string name to the corresponding logging level constant; defaults to INFO
logging.basicConfig(
    level=log_level,
    format='[%(asctime)s] %(levelname)s [%(module)s-%(funcName)s()::%(lineno)d] %(message)s',
    datefmt='%d/%b/%Y %H:%M:%S',
)
log = logging.getLogger(__name__)
## prevent httpx from logging
if log_level <= logging.INFO:
    for noisy in ('httpx', 'httpcore'):
        lg = logging.getLogger(noisy)
        lg.setLevel(logging.WARNING)
        lg.propagate = False


BASE_API_URL = 'https://cards.fabtcg.com/api/search/v1/cards/'
SET_CODES_FILENAME = 'sets_codes.txt'
OUTPUT_DIR_NAME = 'set_data_json_txt'
REQUEST_PAUSE_SECONDS = 0.5
REQUEST_TIMEOUT_SECONDS = 30.0
USER_AGENT = 'tcg-set-card-collector/1.0'

COMBINED_STEM = 'all_sets_combined'
RUN_METADATA_NAME = 'run_metadata.txt'
NO_LATEST_SENTINEL = 'none'

## fetch-failure kinds
NETWORK = 'network'
REMOTE_STATUS = 'remote-status'
DECODE = 'decode'

## exit classes
EXIT_OK = 0
EXIT_DEGRADED = 1
EXIT_ABORTED = 2


class InputSourceError(Exception):
    """
    Raised when the set-codes file is missing or unreadable.
    """


class PersistenceError(Exception):
    """
    Raised when an output artifact cannot be serialized or written.
    Fatal for the rest of the write phase; files already written are left in place.
    """

    def __init__(self, path: Path, cause: Exception) -> None:
        self.path: Path = path
        self.cause: Exception = cause
        super().__init__(f'could not write ``{path}``: {type(cause).__name__}: {cause}')


class SetCodeSource:
    """
    Reads the ordered list of set codes to process.
    - One code per line; surrounding whitespace is stripped.
    - Blank lines are ignored; codes are otherwise not validated.
    - Duplicates are kept (they cause redundant work, not corruption).
    """

    def __init__(self, path: Path) -> None:
        self.path: Path = path

    def read(self) -> list[str]:
        if not self.path.exists():
            raise InputSourceError(f"Input file '{self.path}' not found.")
        try:
            text: str = self.path.read_text(encoding='utf-8')
        except (OSError, ValueError) as exc:
            raise InputSourceError(f"Input file '{self.path}' could not be read: {exc}") from exc
        return self.parse(text)

    @staticmethod
    def parse(text: str) -> list[str]:
        codes: list[str] = []
        for line in text.splitlines():
            code: str = line.strip()
            if code:
                codes.append(code)
        return codes


class FetchError:
    """
    Describes why a set could not be fetched.
    `kind` is one of `network`, `remote-status`, or `decode`, so an operator can tell
      a transient network problem from a permanently bad set code.
    """

    def __init__(self, kind: str, message: str, status_code: int | None = None) -> None:
        self.kind: str = kind
        self.message: str = message
        self.status_code: int | None = status_code

    def is_retryable(self) -> bool:
        if self.kind == NETWORK:
            return True
        return self.kind == REMOTE_STATUS and self.status_code is not None and self.status_code >= 500

    def __repr__(self) -> str:
        return f'FetchError(kind={self.kind!r}, message={self.message!r}, status_code={self.status_code!r})'


class CollectionResult:
    """
    Holds the outcome of fetching one set: either its cards (in the order received) or a FetchError.
    """

    def __init__(self, code: str, cards: list[dict[str, object]] | None = None, error: FetchError | None = None) -> None:
        assert (cards is None) != (error is None), 'a result holds either cards or an error'
        self.code: str = code
        self.cards: list[dict[str, object]] | None = cards
        self.error: FetchError | None = error

    @classmethod
    def success(cls, code: str, cards: list[dict[str, object]]) -> 'CollectionResult':
        return cls(code, cards=cards)

    @classmethod
    def failure(cls, code: str, error: FetchError) -> 'CollectionResult':
        return cls(code, error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.is_success:
            return f'CollectionResult.success({self.code!r}, <{len(self.cards)} cards>)'  # type: ignore[arg-type]
        return f'CollectionResult.failure({self.code!r}, {self.error!r})'


class CatalogClient:
    """
    Fetches one set's cards from the catalog search API.
    - Makes exactly one GET per call, following redirects, bounded by a per-request timeout.
    - Accepts either a bare JSON list of cards or an object with a `results` list.
    - Never raises for fetch problems; they come back as a failed CollectionResult:
      transport errors and timeouts -> `network`, non-2xx -> `remote-status`, bad body -> `decode`.
    """

    def __init__(
        self, client: httpx.Client, base_url: str = BASE_API_URL, *, timeout_s: float = REQUEST_TIMEOUT_SECONDS
    ) -> None:
        self.client: httpx.Client = client
        self.base_url: str = base_url
        self.timeout_s: float = timeout_s

    def set_url(self, code: str) -> str:
        return str(httpx.URL(self.base_url, params={'set_code': code}))

    def fetch(self, code: str) -> CollectionResult:
        code = code.strip()
        if not code:
            raise ValueError('set code must be non-empty')
        url: str = self.set_url(code)
        log.debug(f'fetching set url, ``{url}``')
        try:
            resp: httpx.Response = self.client.get(url, timeout=self.timeout_s, follow_redirects=True)
        except httpx.RequestError as exc:
            return CollectionResult.failure(code, FetchError(NETWORK, f'{type(exc).__name__}: {exc}'))
        if not resp.is_success:
            return CollectionResult.failure(
                code,
                FetchError(REMOTE_STATUS, f'request to {url} failed with status {resp.status_code}', resp.status_code),
            )
        try:
            payload: object = resp.json()
        except ValueError as exc:
            return CollectionResult.failure(code, FetchError(DECODE, f'response is not valid JSON: {exc}'))
        cards: list[dict[str, object]] | None = self.cards_from_payload(payload)
        if cards is None:
            return CollectionResult.failure(
                code, FetchError(DECODE, f'unexpected response shape: {type(payload).__name__}')
            )
        if self.is_partial_page(payload, cards):
            log.warning(
                f'set ``{code}``: response is one page of a larger result ({len(cards)} cards kept); '
                f'`next` and `count` are ignored'
            )
        return CollectionResult.success(code, cards)

    @staticmethod
    def is_partial_page(payload: object, cards: list[dict[str, object]]) -> bool:
        """
        Detects a paginated response that holds only part of the set (a non-null `next`, or `count` above the cards received).
        """
        if not isinstance(payload, dict):
            return False
        if payload.get('next'):
            return True
        count: object = payload.get('count')
        return isinstance(count, int) and count > len(cards)

    @staticmethod
    def cards_from_payload(payload: object) -> list[dict[str, object]] | None:
        """
        Pulls the card list out of a decoded response; returns None when the shape isn't recognized.
        """
        if isinstance(payload, dict):
            payload = payload.get('results')
        if not isinstance(payload, list):
            return None
        if not all(isinstance(card, dict) for card in payload):
            return None
        return payload


class RetryingCatalogClient:
    """
    Wraps a catalog client with retries and exponential backoff, keeping the same `fetch()` contract.
    Only network failures and 5xx statuses are retried; a 404 or a bad body is returned straight away.
    """

    def __init__(self, inner: CatalogClient, *, max_tries: int = 4, sleep: Callable[[float], None] | None = None) -> None:
        if max_tries < 1:
            raise ValueError('max_tries must be at least 1')
        self.inner: CatalogClient = inner
        self.max_tries: int = max_tries
        self.sleep: Callable[[float], None] = sleep or _sleep

    def fetch(self, code: str) -> CollectionResult:
        result: CollectionResult | None = None
        for attempt in range(1, self.max_tries + 1):
            result = self.inner.fetch(code)
            if result.is_success or not result.error.is_retryable():  # type: ignore[union-attr]
                return result
            if attempt < self.max_tries:
                log.debug(f'attempt {attempt} for set ``{code}`` failed, ``{result.error!r}``; retrying')
                self.sleep(min(2**attempt, 15))
        assert result is not None
        return result


class Pacer:
    """
    Enforces a fixed minimum interval between outbound requests.
    - `wait()` blocks until `interval_s` has passed since the previous `wait()` returned
      (or since the pacer was created, for the first call).
    - Holds only the time of the last release; no adaptive backoff.
    """

    def __init__(
        self,
        interval_s: float = REQUEST_PAUSE_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        if interval_s < 0:
            raise ValueError('interval_s must not be negative')
        self.interval_s: float = interval_s
        self.clock: Callable[[], float] = clock
        self.sleep: Callable[[float], None] = sleep or _sleep
        self.last_release: float = clock()

    def wait(self) -> None:
        remaining: float = self.interval_s - (self.clock() - self.last_release)
        if remaining > 0:
            self.sleep(remaining)
        self.last_release = self.clock()


class BatchAccumulator:
    """
    Collects per-set outcomes for one run, in processing order.
    - `successes` holds successful CollectionResults.
    - `failures` holds (code, FetchError) entries.
    - Every code handed to `add()` lands in exactly one of the two.
    """

    def __init__(self, started_at: datetime | None = None) -> None:
        self.started_at: datetime = started_at or _now()
        self.finished_at: datetime | None = None
        self.successes: list[CollectionResult] = []
        self.failures: list[tuple[str, FetchError]] = []

    def add(self, result: CollectionResult) -> None:
        if result.is_success:
            self.successes.append(result)
        else:
            self.failures.append((result.code, result.error))  # type: ignore[arg-type]

    @property
    def attempted(self) -> int:
        return len(self.successes) + len(self.failures)

    def all_cards(self) -> list[dict[str, object]]:
        cards: list[dict[str, object]] = []
        for result in self.successes:
            cards.extend(result.cards)  # type: ignore[arg-type]
        return cards


class BatchOrchestrator:
    """
    Drives the set codes through the catalog client, one at a time.
    - Calls `pacer.wait()` before every fetch, so requests never outpace the configured interval.
    - Routes each result into the accumulator; a failed set never stops later sets.
    - Strictly sequential: set N+1 is not requested until set N's outcome is recorded.
    """

    def __init__(self, client: CatalogClient | RetryingCatalogClient, pacer: Pacer, *, show_progress: bool = True) -> None:
        self.client = client
        self.pacer = pacer
        self.show_progress: bool = show_progress

    def run(self, codes: Sequence[str]) -> BatchAccumulator:
        accumulator = BatchAccumulator()
        for code in tqdm(codes, total=len(codes), desc='Fetching sets', disable=not self.show_progress):
            self.pacer.wait()
            result: CollectionResult = self.client.fetch(code)
            accumulator.add(result)
            if result.is_success:
                log.info(f'set ``{result.code}``: {len(result.cards)} cards')  # type: ignore[arg-type]
            else:
                log.warning(f'set ``{result.code}`` skipped; {result.error.kind}: {result.error.message}')  # type: ignore[union-attr]
        accumulator.finished_at = _now()
        return accumulator


class RunMetadata(NamedTuple):
    """
    Summary of one run, built once from the finished accumulator.
    """

    timestamp: str
    finished_at: str
    elapsed: str
    attempted: int
    succeeded: int
    failed: int
    latest: str
    total_cards: int
    failures: tuple[tuple[str, str, str], ...]

    @classmethod
    def from_accumulator(cls, accumulator: BatchAccumulator) -> 'RunMetadata':
        finished_at: datetime = accumulator.finished_at or _now()
        latest: str = accumulator.successes[-1].code if accumulator.successes else NO_LATEST_SENTINEL
        failures: tuple[tuple[str, str, str], ...] = tuple(
            (code, error.kind, error.message) for code, error in accumulator.failures
        )
        return cls(
            timestamp=accumulator.started_at.isoformat(),
            finished_at=finished_at.isoformat(),
            elapsed=humanize.precisedelta(finished_at - accumulator.started_at, minimum_unit='seconds', format='%0.1f'),
            attempted=accumulator.attempted,
            succeeded=len(accumulator.successes),
            failed=len(accumulator.failures),
            latest=latest,
            total_cards=len(accumulator.all_cards()),
            failures=failures,
        )

    def as_text(self) -> str:
        lines: list[str] = [
            f'timestamp: {self.timestamp}',
            f'finished_at: {self.finished_at}',
            f'elapsed: {self.elapsed}',
            f'attempted: {self.attempted}',
            f'succeeded: {self.succeeded}',
            f'failed: {self.failed}',
            f'latest: {self.latest}',
            f'total_cards: {self.total_cards}',
        ]
        if not self.failures:
            lines.append('failures: none')
        else:
            lines.append('failures:')
            for code, kind, message in self.failures:
                lines.append(f'  {code}: {kind} -- {message}')
        return '\n'.join(lines) + '\n'


class CardRenderer:
    """
    Renders card lists into the two output representations.
    - JSON: field-accurate, key order as received, so identical input gives identical bytes.
    - Plain text: a parseable `start-of-card` delimiter per card, then one `key: value` line per field.
    """

    @staticmethod
    def to_json(cards: list[dict[str, object]]) -> str:
        return json.dumps(cards, ensure_ascii=False, indent=2) + '\n'

    @staticmethod
    def card_to_plain(card: dict[str, object], number: int) -> str:
        lines: list[str] = [f'---|||start-of-card:{number}|||---']
        for key, value in card.items():
            if isinstance(value, (dict, list)):
                rendered: str = json.dumps(value, ensure_ascii=False, separators=(',', ':'))
            elif value is None:
                rendered = ''
            else:
                rendered = str(value)
            lines.append(f'{key}: {rendered}')
        return '\n'.join(lines)

    @classmethod
    def set_to_plain(cls, code: str, cards: list[dict[str, object]]) -> str:
        blocks: list[str] = [f'---|||start-of-set:{code}|||---']
        for number, card in enumerate(cards, start=1):
            blocks.append(cls.card_to_plain(card, number))
        return '\n'.join(blocks) + '\n'

    @classmethod
    def combined_plain(cls, successes: list[CollectionResult]) -> str:
        return ''.join(cls.set_to_plain(result.code, result.cards) for result in successes)  # type: ignore[arg-type]


class WriteReport:
    """
    Lists what the writer produced, for the end-of-run summary.
    """

    def __init__(self, destination: Path) -> None:
        self.destination: Path = destination
        self.paths: list[Path] = []
        self.bytes_written: int = 0
        self.metadata: RunMetadata | None = None

    def record(self, path: Path, size: int) -> None:
        self.paths.append(path)
        self.bytes_written += size

    @property
    def human_size(self) -> str:
        return humanize.naturalsize(self.bytes_written)


class PersistenceWriter:
    """
    Writes a finished batch to the output directory.
    - Per set: `{CODE}_cards.json` and `{CODE}_cards.txt`, in accumulator order.
    - Combined: `all_sets_combined.json` and `all_sets_combined.txt`.
    - Last: `run_metadata.txt`, including the failure ledger. Failed sets get no card files.
    - Each file goes to a `.tmp` sibling first and is moved into place, so it's either complete or absent.
    - Any write or serialization problem raises PersistenceError; earlier files are left in place.
    """

    def __init__(self, renderer: CardRenderer | None = None) -> None:
        self.renderer: CardRenderer = renderer or CardRenderer()

    def write(self, accumulator: BatchAccumulator, destination: Path) -> WriteReport:
        report = WriteReport(destination)
        self.ensure_dir(destination)

        ## per-set files --------------------------------------------
        for result in accumulator.successes:
            cards: list[dict[str, object]] = result.cards  # type: ignore[assignment]
            stem: str = f'{safe_code(result.code)}_cards'
            self.write_artifact(destination / f'{stem}.json', lambda: self.renderer.to_json(cards), report)
            self.write_artifact(
                destination / f'{stem}.txt', lambda: self.renderer.set_to_plain(result.code, cards), report
            )

        ## combined files -------------------------------------------
        self.write_artifact(
            destination / f'{COMBINED_STEM}.json', lambda: self.renderer.to_json(accumulator.all_cards()), report
        )
        self.write_artifact(
            destination / f'{COMBINED_STEM}.txt', lambda: self.renderer.combined_plain(accumulator.successes), report
        )

        ## run metadata ---------------------------------------------
        metadata: RunMetadata = RunMetadata.from_accumulator(accumulator)
        self.write_artifact(destination / RUN_METADATA_NAME, metadata.as_text, report)
        report.metadata = metadata
        return report

    def ensure_dir(self, destination: Path) -> None:
        if destination.is_dir():
            return
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(destination, exc) from exc
        log.info(f'created output directory, ``{destination}``')

    def write_artifact(self, path: Path, render: Callable[[], str], report: WriteReport) -> None:
        """
        Renders and writes one artifact via a temp file and `os.replace()`.
        Called by: write()
        """
        tmp_path: Path = path.with_name(f'{path.name}.tmp')
        try:
            data: bytes = render().encode('utf-8')
            with tmp_path.open('wb') as fh:
                fh.write(data)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            ## a failed cleanup must not mask the write error
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise PersistenceError(path, exc) from exc
        log.debug(f'wrote ``{path}`` ({humanize.naturalsize(len(data))})')
        report.record(path, len(data))


class CLI:
    """
    Manages command-line parsing for the script entrypoint.
    - Every argument has a default, so a bare `uv run ./gather_set_cards.py` works
      when `sets_codes.txt` sits in the current directory.
    - Exposes a parse helper to support testing with custom argv.
    """

    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description='Collect card data for a list of sets from the card-catalog API.')
        parser.add_argument(
            '--codes-file', default=SET_CODES_FILENAME, help=f'File with one set code per line (default: {SET_CODES_FILENAME})'
        )
        parser.add_argument(
            '--output-dir', default=OUTPUT_DIR_NAME, help=f'Directory to write outputs (default: {OUTPUT_DIR_NAME})'
        )
        parser.add_argument(
            '--interval',
            type=non_negative_float,
            default=REQUEST_PAUSE_SECONDS,
            metavar='SECONDS',
            help=f'Minimum pause between requests (default: {REQUEST_PAUSE_SECONDS}).',
        )
        parser.add_argument(
            '--timeout',
            type=positive_float,
            default=REQUEST_TIMEOUT_SECONDS,
            metavar='SECONDS',
            help=f'Per-request timeout (default: {REQUEST_TIMEOUT_SECONDS}).',
        )
        parser.add_argument(
            '--max-tries',
            type=positive_int,
            default=1,
            metavar='INTEGER',
            help='Attempts per set; above 1, network errors and 5xx responses are retried with backoff (default: 1).',
        )
        parser.add_argument('--base-url', default=BASE_API_URL, help=f'Card-search endpoint (default: {BASE_API_URL})')
        return parser

    @staticmethod
    def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
        return CLI.build_parser().parse_args(argv)


def safe_code(code: str) -> str:
    """
    Makes a set code safe to use in a filename.
    Percent-escapes everything outside letters, digits, and `_.-~`, so distinct codes
      (eg `A/B` and `A_B`) always get distinct files.
    """
    return quote(code, safe='')


def non_negative_float(value: str) -> float:
    """
    Argparse type for `--interval`.
    """
    number: float = _parse_float(value)
    if not number >= 0:
        raise argparse.ArgumentTypeError(f'must be zero or more, got {value!r}')
    return number


def positive_float(value: str) -> float:
    """
    Argparse type for `--timeout`.
    """
    number: float = _parse_float(value)
    if not number > 0:
        raise argparse.ArgumentTypeError(f'must be greater than zero, got {value!r}')
    return number


def positive_int(value: str) -> int:
    """
    Argparse type for `--max-tries`.
    """
    try:
        number: int = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f'not an integer: {value!r}') from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f'must be 1 or more, got {value!r}')
    return number


def _parse_float(value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f'not a number: {value!r}') from exc


def print_summary(accumulator: BatchAccumulator, report: WriteReport) -> None:
    """
    Prints succeeded and failed set codes, with each failure's kind.
    Called by: main()
    """
    print(f'\nDone. Fetched {len(accumulator.successes)} of {accumulator.attempted} set(s).')
    for result in accumulator.successes:
        print(f'  ok      {result.code} ({len(result.cards)} cards)')  # type: ignore[arg-type]
    for code, error in accumulator.failures:
        print(f'  FAILED  {code} ({error.kind}: {error.message})', file=sys.stderr)
    print(f'Wrote {len(report.paths)} file(s), {report.human_size}, to: {report.destination}')


def _now() -> datetime:
    return datetime.now().astimezone()


def _sleep(seconds: float) -> None:
    """
    Sleeps for given seconds; centralizes sleep for easier tweaking.
    """
    time.sleep(seconds)


def main(argv: list[str] | None = None, transport: httpx.BaseTransport | None = None) -> int:
    """
    Reads set codes, fetches each set's cards, and writes per-set, combined, and run-metadata files.

    Flow:
    - Parses CLI args.
    - Reads set codes; a missing/unreadable file aborts before any network activity.
    - Creates an httpx client with a user-agent and timeout.
    - Fetches each set in order, pacing requests; failures are recorded and the batch continues.
    - Writes all artifacts; a write failure aborts the write phase.
    - Prints a summary and returns the exit class.

    `transport` lets tests substitute an `httpx.MockTransport`.

    Called by: dundermain
    """
    ## handle args --------------------------------------------------
    args: argparse.Namespace = CLI.parse_args(argv)
    codes_path: Path = Path(args.codes_file).expanduser()
    out_dir: Path = Path(args.output_dir).expanduser().resolve()
    print(f'Card set collector\nReading set codes from: {codes_path}')

    ## read set codes -----------------------------------------------
    try:
        codes: list[str] = SetCodeSource(codes_path).read()
    except InputSourceError as exc:
        print(f'Error: {exc}', file=sys.stderr)
        print('The file should contain one set code per line (e.g., WTR, ARC).', file=sys.stderr)
        return EXIT_ABORTED
    if not codes:
        print(f'No set codes found in {codes_path}. Exiting.')
        return EXIT_OK
    print(f'Found {len(codes)} set codes to process.')

    ## fetch sets ---------------------------------------------------
    headers: dict[str, str] = {'user-agent': USER_AGENT}
    timeout: httpx.Timeout = httpx.Timeout(args.timeout)
    with httpx.Client(headers=headers, timeout=timeout, transport=transport) as http_client:
        client: CatalogClient | RetryingCatalogClient = CatalogClient(http_client, args.base_url, timeout_s=args.timeout)
        if args.max_tries > 1:
            client = RetryingCatalogClient(client, max_tries=args.max_tries)
        orchestrator = BatchOrchestrator(client, Pacer(args.interval))
        accumulator: BatchAccumulator = orchestrator.run(codes)

    ## write outputs ------------------------------------------------
    try:
        report: WriteReport = PersistenceWriter().write(accumulator, out_dir)
    except PersistenceError as exc:
        print(f'Aborted: {exc}', file=sys.stderr)
        print(f'Files written before the failure are left in: {out_dir}', file=sys.stderr)
        return EXIT_ABORTED

    ## wrap up output -----------------------------------------------
    print_summary(accumulator, report)
    if accumulator.failures:
        return EXIT_DEGRADED
    return EXIT_OK

    ## end def main()


if __name__ == '__main__':
    raise SystemExit(main())
