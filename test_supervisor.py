import threading
import time
import unittest
from unittest.mock import MagicMock, patch

from token_radar.core import PipelineState, PipelineSupervisor, PipelineWorker
from token_radar.core.pipeline import build_workers


class CountingWorker(PipelineWorker):

    def __init__(self, name):
        self.name = name
        self.cycles = 0
        self.events = []

    def run(self, stop_event):
        self.events.append(stop_event)
        super().run(stop_event)

    def run_cycle(self):
        self.cycles += 1
        return 0.01


class TestPipelineSupervisor(unittest.TestCase):

    def setUp(self):
        self.created = []

        def factory():
            workers = [CountingWorker('ingestion'), CountingWorker('analysis'), CountingWorker('ranking')]
            self.created.append(workers)
            return workers

        self.supervisor = PipelineSupervisor(factory)
        self.addCleanup(self.supervisor.stop, 5)

    def test_starts_stopped(self):
        self.assertEqual(self.supervisor.state, PipelineState.STOPPED)
        self.assertFalse(self.supervisor.is_running)

    def test_start_runs_every_worker(self):
        self.assertTrue(self.supervisor.start())
        self.assertEqual(self.supervisor.state, PipelineState.RUNNING)

        names = {t.name for t in threading.enumerate()}
        self.assertTrue({'ingestion-worker', 'analysis-worker', 'ranking-worker'} <= names)

        workers = self.created[0]
        deadline = time.monotonic() + 5
        while not all(w.cycles >= 1 for w in workers) and time.monotonic() < deadline:
            time.sleep(0.01)
        self.assertTrue(all(w.cycles >= 1 for w in workers))

        self.assertTrue(self.supervisor.stop(timeout=5))
        # All workers share one stop event
        self.assertEqual(len({id(w.events[0]) for w in workers}), 1)

    def test_second_start_is_a_no_op(self):
        self.assertTrue(self.supervisor.start())
        self.assertFalse(self.supervisor.start())
        self.assertEqual(len(self.created), 1)

    def test_stop_transitions_to_stopped(self):
        self.supervisor.start()
        self.assertTrue(self.supervisor.stop(timeout=5))
        self.assertEqual(self.supervisor.state, PipelineState.STOPPED)
        self.assertFalse(any(t.name == 'analysis-worker' and t.is_alive() for t in threading.enumerate()))

    def test_stop_when_stopped_is_a_no_op(self):
        self.assertTrue(self.supervisor.stop(timeout=1))
        self.assertEqual(self.supervisor.state, PipelineState.STOPPED)

    def test_restart_uses_fresh_stop_event(self):
        self.supervisor.start()
        first_event = self.supervisor._stop_event
        self.supervisor.stop(timeout=5)

        self.assertTrue(self.supervisor.start())
        second_event = self.supervisor._stop_event

        self.assertEqual(len(self.created), 2)
        self.assertIsNot(first_event, second_event)
        self.assertTrue(first_event.is_set())
        self.assertFalse(second_event.is_set())

    def test_factory_failure_leaves_pipeline_stopped(self):
        supervisor = PipelineSupervisor(MagicMock(side_effect=RuntimeError('no database')))
        with self.assertRaises(RuntimeError):
            supervisor.start()
        self.assertEqual(supervisor.state, PipelineState.STOPPED)


class TestBuildWorkers(unittest.TestCase):

    def test_one_worker_per_stage(self):
        store = MagicMock()
        analyzer = MagicMock()
        with patch('token_radar.core.workers.TokenAnalyzer', return_value=analyzer), \
                patch('token_radar.core.workers.ListingFeedClient'):
            workers = build_workers(store)

        self.assertEqual([w.name for w in workers], ['ingestion', 'analysis', 'ranking'])
        self.assertTrue(all(w.store is store for w in workers))


if __name__ == '__main__':
    unittest.main()
