#!/usr/bin/env python3
"""
Check PostgreSQL connection
Quick script to verify PostgreSQL connection settings and token store contents
"""

import sys

from token_radar.config import Config


def check_connection():
    """Check PostgreSQL connection."""
    print("=" * 80)
    print("PostgreSQL Connection Check")
    print("=" * 80)

    # Show configuration
    print("\nConfiguration:")
    if Config.POSTGRES_CONNECTION_STRING:
        print("  Using POSTGRES_CONNECTION_STRING")
    else:
        print(f"  Host: {Config.POSTGRES_HOST}")
        print(f"  Port: {Config.POSTGRES_PORT}")
        print(f"  Database: {Config.POSTGRES_DATABASE}")
        print(f"  User: {Config.POSTGRES_USER}")
        print(f"  Password: {'*' * len(Config.POSTGRES_PASSWORD)}")

    print("\nTrying to connect...")

    try:
        from token_radar.database import get_postgres_client

        pg = get_postgres_client()
        print("✅ Connection successful!")

        print(f"\n📊 Token store stats:")
        print(f"  Tokens: {pg.get_token_count():,}")
        print(f"  Pending analysis: {pg.get_pending_count():,}")
        print(f"  Ranked: {len(pg.get_ranked_tokens())}")
        print(f"  Scans: {len(pg.get_scans())}")

        result = pg.execute_query("SELECT version()")
        print(f"  PostgreSQL version: {result[0]['version'][:50]}...")

        pg.close()
        print("\n✅ All checks passed!")
        return 0

    except Exception as e:
        print(f"\n❌ Connection failed!")
        print(f"Error: {e}")
        print("\n" + "=" * 80)
        print("Troubleshooting:")
        print("=" * 80)
        print("\n1. Check if PostgreSQL is running:")
        print("   pg_isready -h $POSTGRES_HOST -p $POSTGRES_PORT")
        print("\n2. Verify POSTGRES_* settings in .env")
        print("\n3. Make sure the database exists:")
        print(f"   createdb {Config.POSTGRES_DATABASE}")
        print()
        return 1


if __name__ == '__main__':
    sys.exit(check_connection())
