"""
Integration tests for the CLI commands.
Feeds and the advisory model are mocked; storage is a temporary SQLite file.
"""

import pytest
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, patch

from analysis.models import EnrichedPoint
from ingestion.fund_registry import get_profile
from reports.advisory import ANALYSIS_UNAVAILABLE_MESSAGE
from storage.credential_store import get_stored_api_key
from storage.loaders import get_connection, load_series, replace_series
from storage.run_registry import finish_run, start_run, RunStatus

import cli


def _series(premiums, start=date(2024, 3, 1)):
    return [
        EnrichedPoint(
            date=start + timedelta(days=i),
            close_price=1.0 + p / 100,
            ref_date=start + timedelta(days=i - 1),
            reference_value=1.0,
            premium_rate=p,
            lag_days=1
        )
        for i, p in enumerate(premiums)
    ]


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / 'watch.db')


class TestOverviewCommand:

    @patch('cli.fetch_portfolio', new_callable=AsyncMock)
    def test_overview_sorted(self, mock_portfolio, db_path, capsys):
        """Rows are sorted by score and the top pick is shown."""
        mock_portfolio.return_value = [
            (get_profile('159941'), _series([2.0, 1.55])),
            (get_profile('513100'), _series([1.0, 0.45])),
            (get_profile('159696'), []),
        ]

        code = cli.main(['--db-path', db_path, 'overview'])

        out = capsys.readouterr().out
        assert code == 0
        assert '**Top pick:** Guotai NASDAQ-100 ETF (513100), score 81' in out
        assert out.index('| 159696 |') < out.index('| 513100 |') < out.index('| 159941 |')
        assert mock_portfolio.call_args.args[1] == 180


class TestDetailCommand:

    @patch('cli.run_fund_data')
    def test_detail_renders_fetched_series(self, mock_run, db_path, capsys):
        mock_run.return_value = {'status': 'completed', 'series': _series([0.0, 1.0, -1.0, 2.0, 3.0])}

        code = cli.main(['--db-path', db_path, 'detail', '513100', '--range', '90'])

        out = capsys.readouterr().out
        assert code == 0
        assert '# Guotai NASDAQ-100 ETF (513100)' in out
        assert 'last 3 months' in out
        assert mock_run.call_args.args[0].days == 365

    @patch('cli.run_fund_data')
    def test_detail_falls_back_to_stored(self, mock_run, db_path, capsys):
        """An empty fetch shows the stored series."""
        conn = get_connection(db_path)
        replace_series(conn, '513100', _series([0.2, 0.3]))
        run_id = start_run(conn, 'fund_data:513100', datetime(2024, 3, 11, 15, 0))
        finish_run(conn, run_id, RunStatus.COMPLETED, rows_out=2)
        conn.close()
        mock_run.return_value = {'status': 'completed', 'series': []}

        code = cli.main(['--db-path', db_path, 'detail', '513100'])

        captured = capsys.readouterr()
        assert code == 0
        assert 'showing stored data for 513100 fetched 2024-03-11 15:00' in captured.err
        assert '## Recent Data' in captured.out

    @patch('cli.run_fund_data')
    def test_detail_export(self, mock_run, db_path, tmp_path, capsys):
        mock_run.return_value = {'status': 'completed', 'series': _series([0.2, 0.3])}
        export_path = tmp_path / 'export.csv'

        cli.main(['--db-path', db_path, 'detail', '513100', '--export', str(export_path)])

        assert export_path.read_text().startswith('date,price,ref_date,ref_value')

    def test_detail_unknown_fund(self, db_path, capsys):
        code = cli.main(['--db-path', db_path, 'detail', '000000'])

        assert code == 1
        assert 'Unknown fund' in capsys.readouterr().err


class TestImportCsvCommand:

    def test_import_stores_series(self, db_path, tmp_path, capsys):
        csv_path = tmp_path / 'data.csv'
        csv_path.write_text(
            "date,price,refdate,refvalue\n"
            "2024-01-02,101,2024-01-01,100\n"
            "2024-01-03,abc,2024-01-02,100\n"
            "2024-01-04,99,2024-01-03,100\n"
        )

        code = cli.main(['--db-path', db_path, 'import-csv', str(csv_path)])

        assert code == 0
        assert 'Imported 2 rows as CSV' in capsys.readouterr().err
        conn = get_connection(db_path)
        assert [p.premium_rate for p in load_series(conn, 'CSV')] == [1.0, -1.0]
        conn.close()

    def test_import_nothing_parsed(self, db_path, tmp_path, capsys):
        csv_path = tmp_path / 'bad.csv'
        csv_path.write_text("garbage\n")

        assert cli.main(['--db-path', db_path, 'import-csv', str(csv_path)]) == 1
        assert 'Could not parse CSV' in capsys.readouterr().err

    def test_import_missing_file(self, db_path, tmp_path, capsys):
        assert cli.main(['--db-path', db_path, 'import-csv', str(tmp_path / 'none.csv')]) == 1


class TestAdviseAndKeyCommands:

    def test_set_key(self, db_path, capsys):
        assert cli.main(['--db-path', db_path, 'set-key', 'abc123']) == 0

        conn = get_connection(db_path)
        assert get_stored_api_key(conn) == 'abc123'
        conn.close()

    def test_advise_missing_key(self, db_path, capsys, monkeypatch):
        monkeypatch.delenv('GEMINI_API_KEY', raising=False)
        conn = get_connection(db_path)
        replace_series(conn, '513100', _series([0.2, 0.3]))
        conn.close()

        code = cli.main(['--db-path', db_path, 'advise', '513100'])

        assert code == 1
        assert 'set-key' in capsys.readouterr().err

    @patch('reports.advisory.gemini_request')
    def test_advise_passes_last_30_points(self, mock_request, db_path, capsys):
        """The CLI hands over 30 points; the prompt keeps the last 5."""
        mock_request.side_effect = RuntimeError("network down")
        conn = get_connection(db_path)
        replace_series(conn, '513100', _series([0.01 * i for i in range(40)]))
        conn.close()
        cli.main(['--db-path', db_path, 'set-key', 'k'])

        with patch('cli.analyze_premium_trend', wraps=cli.analyze_premium_trend) as spy:
            code = cli.main(['--db-path', db_path, 'advise', '513100', '--method', 'REALTIME_IOPV'])

        assert code == 0
        assert len(spy.call_args.args[1]) == 30
        assert ANALYSIS_UNAVAILABLE_MESSAGE in capsys.readouterr().out


class TestRunsCommand:

    @pytest.fixture
    def tracked_db(self, db_path):
        conn = get_connection(db_path)
        first = start_run(conn, 'fund_data:513100', datetime(2024, 3, 11, 15, 0))
        finish_run(conn, first, RunStatus.COMPLETED, finished_at=datetime(2024, 3, 11, 15, 0, 3),
                   rows_in=365, rows_out=364)
        other = start_run(conn, 'fund_data:159941', datetime(2024, 3, 12, 15, 0))
        finish_run(conn, other, RunStatus.FAILED, error_message='HTTP 503')
        conn.close()
        return db_path

    def test_list_filtered_by_ticker(self, tracked_db, capsys):
        code = cli.main(['--db-path', tracked_db, 'runs', '--ticker', '513100'])

        out = capsys.readouterr().out
        assert code == 0
        assert '| completed | 365 | 364 | 3.0s |' in out
        assert 'fund_data:159941' not in out

    def test_single_run(self, tracked_db, capsys):
        code = cli.main(['--db-path', tracked_db, 'runs', '--id', '2'])

        out = capsys.readouterr().out
        assert code == 0
        assert '| failed |' in out
        assert 'HTTP 503' in out

    def test_unknown_run(self, tracked_db, capsys):
        assert cli.main(['--db-path', tracked_db, 'runs', '--id', '99']) == 1
        assert 'Run ID 99 not found' in capsys.readouterr().err
