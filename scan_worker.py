#!/usr/bin/env python3
"""
One-shot token scan and scan history.

Runs a single synchronous scan (listing fetch + analysis + scoring) outside the
perpetual pipeline, and inspects stored scans and the live top ranking.

Examples:
  python scan_worker.py --run --type test --limit 20
  python scan_worker.py --list-scans
  python scan_worker.py --show-scan 12
  python scan_worker.py --clear-test-scans
  python scan_worker.py --top
"""

import argparse
import logging
import sys

from token_radar.config import Config, setup_logging
from token_radar.core import TokenScanService
from token_radar.database import SCAN_TYPES, get_postgres_client

setup_logging()
logger = logging.getLogger(__name__)


def print_tokens(rows, title: str):
    print('\n' + '=' * 100)
    print(title)
    print('=' * 100)
    if not rows:
        print('  (no tokens)')
        return
    print(f"{'Rank':>4}  {'Symbol':<12} {'Score':>8} {'Liquidity':>14} {'Holders':>8} {'24h %':>8}  Address")
    print('-' * 100)
    for row in rows:
        print(
            f"{row.get('rank') or '-':>4}  {(row.get('symbol') or '')[:12]:<12} "
            f"{(row.get('total_score') or 0):>8.2f} {(row.get('liquidity') or 0):>14,.0f} "
            f"{(row.get('holder_count') or 0):>8,} {(row.get('price_change_24h') or 0):>8.2f}  {row.get('address')}"
        )


def main():
    parser = argparse.ArgumentParser(
        description='One-shot token scans and scan history',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument('--run', action='store_true', help='Run a scan now')
    action.add_argument('--list-scans', action='store_true', help='List stored scans')
    action.add_argument('--show-scan', type=int, metavar='SCAN_ID', help='Show the tokens of a stored scan')
    action.add_argument('--clear-test-scans', action='store_true', help='Delete all test scans')
    action.add_argument('--top', action='store_true', help='Show the live top-ranked tokens')
    parser.add_argument('--type', choices=SCAN_TYPES, default='test', help='Scan type (default: test)')
    parser.add_argument('--limit', type=int, default=Config.SCAN_TOKEN_LIMIT, help='Maximum tokens to analyze')
    parser.add_argument('--dry-run', action='store_true', help='Run the scan without saving it')
    args = parser.parse_args()

    store = get_postgres_client()
    try:
        if args.top:
            print_tokens(store.get_ranked_tokens(), f'TOP {Config.TOP_K} TOKENS')
            return 0

        service = TokenScanService(store)
        if args.run:
            df = service.run_scan(scan_type=args.type, limit=args.limit, save=not args.dry_run)
            print_tokens(list(df.iter_rows(named=True)), f'{args.type.upper()} SCAN RESULTS')
        elif args.list_scans:
            scans = service.get_scans()
            print(f'\n{len(scans)} stored scans')
            for scan in scans:
                print(f"  #{scan['id']:<6} {scan['scan_date']}  {scan['scan_type']:<6} {scan['status']:<10} {scan['token_count']} tokens")
        elif args.show_scan is not None:
            print_tokens(service.get_scan_tokens(args.show_scan), f'SCAN #{args.show_scan}')
        elif args.clear_test_scans:
            deleted = service.clear_test_scans()
            print(f'Test scans cleared successfully ({deleted} removed)')
        return 0
    except Exception as e:
        logger.error(f'Scan command failed: {e}', exc_info=True)
        return 1
    finally:
        store.close()


if __name__ == '__main__':
    sys.exit(main())
