#!/usr/bin/env python3
"""
Debug script to trace the analysis of a specific token.
Shows: selected pair, threshold gate, liquidity, holders and every score component.
Nothing is written to the token store.

Usage: python debug_token.py <token_address>
Example: python debug_token.py AhhdRu5YZdjVkKR3wbnUDaymVQL2ucjMQ63sZ3LFHsch
"""

import sys

from token_radar.config import Config, setup_logging
from token_radar.processors import ScoringEngine
from token_radar.providers import QuoteClient, LiquidityClient, HolderClient

setup_logging()


def debug_token(token_address: str):
    print("=" * 100)
    print(f"DEBUG TOKEN: {token_address}")
    print("=" * 100)

    print("\n1. BEST SOL/STABLECOIN PAIR")
    print("-" * 100)
    snapshot = QuoteClient().get_best_pair(token_address)
    if snapshot is None:
        print("No qualifying pair found -> token would be stored with a zero snapshot")
        return
    print(f"  Price:        ${snapshot.price:.10f}")
    print(f"  24h volume:   ${snapshot.volume_24h:,.2f}")
    print(f"  24h change:   {snapshot.price_change_24h:.2f}%")
    print(f"  Market cap:   ${snapshot.market_cap:,.2f}")
    print(f"  FDV:          ${snapshot.fdv:,.2f}")
    print(f"  24h txns:     {snapshot.buys:,} buys / {snapshot.sells:,} sells")

    print("\n2. THRESHOLD GATE")
    print("-" * 100)
    if snapshot.market_cap < Config.MIN_MARKET_CAP_USD or snapshot.volume_24h < Config.MIN_VOLUME_24H_USD:
        print(f"  FAILED (market cap >= ${Config.MIN_MARKET_CAP_USD:,.0f} and volume >= ${Config.MIN_VOLUME_24H_USD:,.0f} required)")
        print("  Token would be stored with score 0; liquidity and holders are not fetched")
        return
    print("  passed")

    print("\n3. LIQUIDITY AND HOLDERS")
    print("-" * 100)
    liquidity = LiquidityClient().get_total_liquidity(token_address)
    holders = HolderClient().get_holder_count(token_address)
    print(f"  Liquidity:    ${liquidity:,.2f}")
    print(f"  Holders:      {holders:,}")

    print("\n4. SCORE")
    print("-" * 100)
    result = ScoringEngine.breakdown(snapshot, liquidity, holders)
    print(f"  Volume score:        {result.volume_score:.4f}")
    print(f"  Liquidity score:     {result.liquidity_score:.4f}")
    print(f"  Holder score:        {result.holder_score:.4f}")
    print(f"  Transaction score:   {result.tx_score:.4f}")
    print(f"  Price action score:  {result.price_action_score:.4f}")
    print(f"  Weighted sum:        {result.weighted_sum:.4f}")
    print(f"  Penalty multiplier:  {result.penalty_multiplier:.4f}")
    print(f"  TOTAL SCORE:         {result.total_score:.2f}")


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    debug_token(sys.argv[1])
