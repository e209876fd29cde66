"""
CLI script for merging two accounts by hand.

Usage:
    python -m identity_engine.services.merge.run_merge_cli KEEP_ID DISCARD_ID [--explanation TEXT]

Without --explanation no notices are sent to the account owners.
"""
import argparse
import asyncio
import logging
import sys
import time

from identity_engine.core.config import settings
from identity_engine.core.errors import IdentityError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Merge one account into another")
    parser.add_argument("keep_id", help="ID of the account that survives")
    parser.add_argument("discard_id", help="ID of the account merged and deleted")
    parser.add_argument(
        "--explanation",
        default=None,
        help="Reason sent to both account owners (no notice when omitted)"
    )
    return parser


def main(argv=None, service=None) -> int:
    args = build_parser().parse_args(argv)

    if service is None:
        from supabase import create_client

        from identity_engine.services.identity import IdentityService
        from identity_engine.services.store import SupabaseDocumentStore

        client = create_client(settings.supabase_url, settings.supabase_service_key or settings.supabase_anon_key)
        service = IdentityService.from_store(SupabaseDocumentStore(client))
        print("✅ Supabase connected")

    start_time = time.time()
    print(f"🚀 Merging {args.discard_id} into {args.keep_id}")

    try:
        merged = asyncio.run(service.merge_accounts(args.keep_id, args.discard_id, args.explanation))
        elapsed = time.time() - start_time
        print(f"✅ Merged into {merged} in {elapsed:.1f}s")
        if args.explanation:
            print("   📧 Merge notices queued")
        return 0

    except (IdentityError, LookupError, ValueError) as e:
        print(f"❌ Failed: {e}")
        return 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
