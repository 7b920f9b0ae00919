import enum
import logging
import threading
from typing import Callable, List, Optional

from .workers import PipelineWorker

logger = logging.getLogger(__name__)


class PipelineState(enum.Enum):
    STOPPED = 'stopped'
    STARTING = 'starting'
    RUNNING = 'running'
    STOPPING = 'stopping'


class PipelineSupervisor:
    """
    Owns the worker threads.

    Each start() hands a fresh stop event to every worker thread. stop() only sets the
    event: workers notice it at the top of their next loop iteration, so in-flight
    provider calls and rate-limit waits finish first.
    """

    def __init__(self, worker_factory: Callable[[], List[PipelineWorker]]):
        self._worker_factory = worker_factory
        self._lock = threading.Lock()
        self._state = PipelineState.STOPPED
        self._stop_event: Optional[threading.Event] = None
        self._threads: List[threading.Thread] = []

    @property
    def state(self) -> PipelineState:
        with self._lock:
            self._reap()
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state == PipelineState.RUNNING

    def _reap(self):
        # Caller holds the lock
        if self._state == PipelineState.STOPPING and not any(t.is_alive() for t in self._threads):
            self._threads = []
            self._stop_event = None
            self._state = PipelineState.STOPPED
            logger.info('Pipeline stopped')

    def start(self) -> bool:
        """Start all workers. Returns False (no-op) unless the pipeline was stopped."""
        with self._lock:
            self._reap()
            if self._state != PipelineState.STOPPED:
                logger.info(f'Pipeline already {self._state.value}, start ignored')
                return False
            self._state = PipelineState.STARTING

            try:
                workers = self._worker_factory()
                stop_event = threading.Event()
                threads = [
                    threading.Thread(target=worker.run, args=(stop_event,), name=f'{worker.name}-worker', daemon=True)
                    for worker in workers
                ]
                for thread in threads:
                    thread.start()
            except Exception:
                logger.error('Failed to start pipeline', exc_info=True)
                self._state = PipelineState.STOPPED
                raise

            self._stop_event = stop_event
            self._threads = threads
            self._state = PipelineState.RUNNING

        logger.info('=' * 80)
        logger.info(f'Pipeline running with {len(threads)} workers: {", ".join(t.name for t in threads)}')
        logger.info('=' * 80)
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Ask every worker to exit after its current cycle.

        Args:
            timeout: Seconds to wait for the threads to exit; None returns immediately

        Returns:
            True if all workers have exited
        """
        with self._lock:
            if self._state == PipelineState.RUNNING:
                self._state = PipelineState.STOPPING
                self._stop_event.set()
                logger.info('Pipeline stopping...')
            threads = list(self._threads)

        if timeout is not None:
            for thread in threads:
                thread.join(timeout)

        return self.state == PipelineState.STOPPED
