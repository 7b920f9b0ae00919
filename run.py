#!/usr/bin/env python3
"""
Token Radar pipeline
Runs the ingestion, analysis and ranking workers until interrupted.
"""

import logging
import signal
import sys
import threading

from token_radar.config import setup_logging
from token_radar.core import create_supervisor
from token_radar.database import get_postgres_client

setup_logging()
logger = logging.getLogger(__name__)


def main():
    logger.info('=' * 80)
    logger.info('TOKEN RADAR PIPELINE')
    logger.info('=' * 80)

    store = get_postgres_client()
    supervisor = create_supervisor(store)
    shutdown = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f'Received signal {signum}, shutting down...')
        shutdown.set()

    signal.signal(signal.SIGTERM, handle_signal)

    supervisor.start()
    try:
        while not shutdown.is_set():
            shutdown.wait(60)
            logger.info(f'Pipeline {supervisor.state.value}: {store.get_pending_count():,} tokens pending analysis')
    except KeyboardInterrupt:
        logger.info('Stopped by user.')
    finally:
        # In-flight provider calls finish before the workers exit
        stopped = supervisor.stop(timeout=90)
        if not stopped:
            logger.warning('Some workers were still busy at shutdown')
        store.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
