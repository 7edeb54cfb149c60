import contextlib
import io
import json
import tempfile
import unittest
import unittest.mock
from pathlib import Path

import httpx

from gather_set_cards import EXIT_ABORTED, EXIT_DEGRADED, EXIT_OK, USER_AGENT, main

CARDS_BY_CODE: dict[str, list[dict[str, object]]] = {
    'WTR': [{'card_id': 'wtr-1'}, {'card_id': 'wtr-2'}],
    'ARC': [{'card_id': 'arc-1'}, {'card_id': 'arc-2'}, {'card_id': 'arc-3'}],
}


def catalog_handler(request: httpx.Request) -> httpx.Response:
    """
    Serves CARDS_BY_CODE as `results` pages; unknown codes get a 404.
    """
    code: str = request.url.params.get('set_code', '')
    if code not in CARDS_BY_CODE:
        return httpx.Response(404, json={'detail': 'Not found.'})
    cards: list[dict[str, object]] = CARDS_BY_CODE[code]
    return httpx.Response(200, json={'count': len(cards), 'next': None, 'previous': None, 'results': cards})


class TestMain(unittest.TestCase):
    """
    Runs main() end to end against a mocked catalog.
    """

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp: Path = Path(self._tmp.name)
        self.codes_path: Path = self.tmp / 'sets_codes.txt'
        self.out_dir: Path = self.tmp / 'set_data_json_txt'
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_main(self, extra_args: list[str] | None = None, transport: httpx.BaseTransport | None = None) -> int:
        argv: list[str] = [
            '--codes-file',
            str(self.codes_path),
            '--output-dir',
            str(self.out_dir),
            '--interval',
            '0',
        ] + (extra_args or [])
        with contextlib.redirect_stdout(self.stdout), contextlib.redirect_stderr(self.stderr):
            return main(argv, transport=transport or httpx.MockTransport(catalog_handler))

    def test_degraded_run(self) -> None:
        """
        Checks the WTR/ARC/XXX scenario end to end: exit class, files, metadata, summary.
        """
        self.codes_path.write_text('WTR\nARC\n\nXXX\n', encoding='utf-8')
        exit_code: int = self.run_main()
        self.assertEqual(exit_code, EXIT_DEGRADED)
        with (self.out_dir / 'all_sets_combined.json').open('r', encoding='utf-8') as fh:
            combined: list[dict[str, object]] = json.load(fh)
        self.assertEqual([c['card_id'] for c in combined], ['wtr-1', 'wtr-2', 'arc-1', 'arc-2', 'arc-3'])
        self.assertFalse((self.out_dir / 'XXX_cards.json').exists())
        metadata: str = (self.out_dir / 'run_metadata.txt').read_text(encoding='utf-8')
        self.assertIn('attempted: 3\n', metadata)
        self.assertIn('succeeded: 2\n', metadata)
        self.assertIn('failed: 1\n', metadata)
        self.assertIn('latest: ARC\n', metadata)
        self.assertIn('XXX: remote-status', metadata)
        self.assertIn('FAILED  XXX (remote-status', self.stderr.getvalue())
        self.assertIn('ok      WTR (2 cards)', self.stdout.getvalue())

    def test_clean_run(self) -> None:
        self.codes_path.write_text('WTR\nARC\n', encoding='utf-8')
        self.assertEqual(self.run_main(), EXIT_OK)
        self.assertIn('failures: none', (self.out_dir / 'run_metadata.txt').read_text(encoding='utf-8'))

    def test_sends_user_agent_and_set_code(self) -> None:
        seen: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.headers['user-agent'], request.url.params['set_code']))
            return catalog_handler(request)

        self.codes_path.write_text('WTR\n', encoding='utf-8')
        self.run_main(transport=httpx.MockTransport(handler))
        self.assertEqual(seen, [(USER_AGENT, 'WTR')])

    def test_retry_flag_recovers_from_server_error(self) -> None:
        calls: list[str] = []

        def flaky_handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.params['set_code'])
            if len(calls) == 1:
                return httpx.Response(503)
            return catalog_handler(request)

        self.codes_path.write_text('WTR\n', encoding='utf-8')
        with unittest.mock.patch('gather_set_cards.time.sleep'):
            exit_code: int = self.run_main(['--max-tries', '2'], transport=httpx.MockTransport(flaky_handler))
        self.assertEqual(exit_code, EXIT_OK)
        self.assertEqual(calls, ['WTR', 'WTR'])

    def test_missing_codes_file_aborts_before_network(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError('no request expected')

        exit_code: int = self.run_main(transport=httpx.MockTransport(handler))
        self.assertEqual(exit_code, EXIT_ABORTED)
        self.assertIn('not found', self.stderr.getvalue())
        self.assertFalse(self.out_dir.exists())

    def test_empty_codes_file_writes_nothing(self) -> None:
        self.codes_path.write_text('\n  \n', encoding='utf-8')
        self.assertEqual(self.run_main(), EXIT_OK)
        self.assertFalse(self.out_dir.exists())

    def test_unwritable_output_aborts(self) -> None:
        self.codes_path.write_text('WTR\n', encoding='utf-8')
        self.out_dir.write_text('a file, not a directory', encoding='utf-8')
        self.assertEqual(self.run_main(), EXIT_ABORTED)
        self.assertIn('Aborted:', self.stderr.getvalue())

    def test_invalid_numeric_options_are_usage_errors(self) -> None:
        """
        Checks that out-of-range pacing, timeout, and retry values stop the run as usage errors (exit 2)
        before any codes are read or requests made.
        """
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError('no request expected')

        self.codes_path.write_text('WTR\n', encoding='utf-8')
        bad_args: list[list[str]] = [
            ['--interval', '-1'],
            ['--interval', 'nan'],
            ['--timeout', '-5'],
            ['--timeout', '0'],
            ['--max-tries', '0'],
            ['--max-tries', 'two'],
        ]
        for extra_args in bad_args:
            with self.subTest(args=extra_args):
                with self.assertRaises(SystemExit) as ctx:
                    self.run_main(extra_args, transport=httpx.MockTransport(handler))
                self.assertEqual(ctx.exception.code, EXIT_ABORTED)
                self.assertIn(extra_args[0], self.stderr.getvalue())
        self.assertFalse(self.out_dir.exists())


if __name__ == '__main__':
    unittest.main()
