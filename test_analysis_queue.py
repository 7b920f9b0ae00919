import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

from token_radar.processors import AnalysisQueue, analysis_priority

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def row(address, last=None, is_new=False, score=None):
    return {'address': address, 'name': address, 'last_analysis_timestamp': last, 'is_new': is_new, 'total_score': score}


class TestAnalysisPriority(unittest.TestCase):

    def test_priority_order(self):
        rows = [
            row('stale-low', last=NOW - timedelta(hours=5), score=10.0),
            row('stale-unscored', last=NOW - timedelta(hours=9)),
            row('stale-high', last=NOW - timedelta(hours=1), score=90.0),
            row('never-b', is_new=False),
            row('never-a', is_new=True),
            row('new-analyzed', last=NOW, is_new=True, score=1.0),
        ]

        ordered = [r['address'] for r in sorted(rows, key=analysis_priority)]

        self.assertEqual(ordered, [
            'never-a',
            'never-b',
            'new-analyzed',
            'stale-high',
            'stale-low',
            'stale-unscored',
        ])

    def test_equal_scores_oldest_first(self):
        older = row('b', last=NOW - timedelta(hours=3), score=5.0)
        newer = row('a', last=NOW - timedelta(hours=1), score=5.0)
        self.assertLess(analysis_priority(older), analysis_priority(newer))

    def test_address_breaks_remaining_ties(self):
        self.assertLess(analysis_priority(row('a')), analysis_priority(row('b')))


class TestAnalysisQueue(unittest.TestCase):

    def test_serves_loaded_batch_in_priority_order(self):
        loader = MagicMock(return_value=[row('low', last=NOW, score=1.0), row('first'), row('high', last=NOW, score=50.0)])
        queue = AnalysisQueue(loader, batch_size=20, refresh_seconds=3600)

        self.assertEqual(queue.pop()['address'], 'first')
        self.assertEqual(queue.pop()['address'], 'high')
        self.assertEqual(len(queue), 1)
        loader.assert_called_once_with(20)

    def test_empty_store_returns_none(self):
        queue = AnalysisQueue(MagicMock(return_value=[]), batch_size=5)
        self.assertIsNone(queue.pop())

    def test_reloads_when_drained(self):
        loader = MagicMock(side_effect=[[row('a')], [row('b')], []])
        queue = AnalysisQueue(loader, batch_size=1, refresh_seconds=3600)

        self.assertEqual(queue.pop()['address'], 'a')
        self.assertEqual(queue.pop()['address'], 'b')
        self.assertIsNone(queue.pop())
        self.assertEqual(loader.call_count, 3)

    @patch('token_radar.processors.analysis_queue.time.monotonic')
    def test_reloads_stale_batch(self, mock_monotonic):
        mock_monotonic.return_value = 100.0
        loader = MagicMock(side_effect=[[row('a'), row('b')], [row('fresh')]])
        queue = AnalysisQueue(loader, batch_size=2, refresh_seconds=30)

        self.assertEqual(queue.pop()['address'], 'a')
        mock_monotonic.return_value = 131.0
        self.assertEqual(queue.pop()['address'], 'fresh')
        self.assertEqual(loader.call_count, 2)

    def test_invalidate_forces_reload(self):
        loader = MagicMock(return_value=[row('a'), row('b')])
        queue = AnalysisQueue(loader, batch_size=2, refresh_seconds=3600)
        queue.pop()
        queue.invalidate()
        self.assertEqual(len(queue), 0)
        self.assertEqual(queue.pop()['address'], 'a')
        self.assertEqual(loader.call_count, 2)


if __name__ == '__main__':
    unittest.main()
