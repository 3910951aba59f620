"""Command line interface for inspecting and clearing the cache"""
import argparse
import asyncio
import logging

from config import settings_conf
from . import FileCache, CacheError

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="storage", description="Inspect or clear cached activity data")
    p.add_argument("--dir", default=None, help="Storage directory (defaults to storage_dir from settings)")
    p.add_argument("--delete", metavar="KEY", help="Delete one cache entry")
    p.add_argument("--clear", action="store_true", help="Delete every cache entry")
    return p

async def run(args: argparse.Namespace):
    cache = FileCache(args.dir or settings_conf['storage_dir'])

    if args.delete:
        try:
            await cache.delete_cache_entry(args.delete)
            print(f"Deleted {args.delete}")
        except CacheError as e:
            print(f"Could not delete {args.delete}: {e}")
        return

    if args.clear:
        removed = await cache.clear()
        print(f"Removed {len(removed)} cache entries")
        return

    files = await cache.status()
    if not files:
        print(f"No cache entries in {cache.storage_dir}")
        return

    print(f"\nCache entries in {cache.storage_dir}:")
    print("-" * 50)
    for info in files:
        date_range = info['date_range'] or {}
        print(f"{info['key']:<16} {info['records']:>7} records  {info['size']:>10} bytes  "
              f"modified {info['modified']}  "
              f"range {date_range.get('start', '-')} .. {date_range.get('end', '-')}")

def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = build_arg_parser().parse_args(argv)
    asyncio.run(run(args))
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
