"""Manual scraper runner for testing and debugging adapters.

Runs one site adapter against one search URL (or a saved HTML file) and
prints the listings it extracts.

Usage:
    python scripts/run_scraper.py --url "https://suumo.jp/jj/chintai/ichiran/..."
    python scripts/run_scraper.py --url "https://myhome.nifty.com/rent/..." --limit 5
    python scripts/run_scraper.py --site goodrooms --html saved_page.html
"""

import argparse
import asyncio
import os
import sys
import traceback
from pathlib import Path

# Add backend to path so we can import rentwatch modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from rentwatch.config import Settings
from rentwatch.core.logging import configure_logging
from rentwatch.scrapers.register_adapters import build_adapter_factory


async def run_scraper(url: str = None, site: str = None, html_file: str = None, limit: int = 10):
    """Run a site adapter and display the results.

    Args:
        url: Search result URL to scrape (pagination included)
        site: Site slug; derived from the URL when omitted
        html_file: Saved result page to extract instead of fetching
        limit: Maximum number of listings to display (default: 10)
    """
    factory = build_adapter_factory(settings=Settings())

    site = site or (factory.site_for_url(url) if url else None)
    if not site or not factory.has_adapter(site):
        print(f"\n❌ Error: no adapter for {site or url!r}")
        print(f"\n📋 Available sites:")
        for slug in factory.get_registered_sites():
            print(f"   - {slug}")
        return

    adapter = factory.create_adapter(site)

    print(f"\n{'='*70}")
    print(f"  Running {adapter.site_name} adapter ({adapter.site_slug})")
    print(f"{'='*70}")
    print(f"  📊 Display Limit: {limit}")
    print(f"  📄 Max pages: {adapter.max_pages}")
    print(f"{'='*70}\n")

    try:
        if html_file:
            print(f"📂 Extracting from {html_file}...\n")
            records = adapter.extract(Path(html_file).read_text(encoding="utf-8"))
        else:
            print(f"🔍 Scraping {url}...\n")
            records = await adapter.scrape_url(url)

        if not records:
            print("⚠️  No listings found.\n")
            return

        print(f"✅ Found {len(records)} listings\n")

        for i, record in enumerate(records[:limit], 1):
            print(f"[{i}] {record.title}")
            print(f"    💰 Rent: {record.price}")
            print(f"    🏢 {record.layout} / {record.area}")
            print(f"    📍 {record.address or '-'}")
            for line in record.access:
                print(f"    🚉 {line}")
            if record.image_url:
                print(f"    🖼️  {record.image_url[:80]}")
            print(f"    🔗 URL: {record.url[:80]}")
            print(f"    🆔 {record.id}")
            print()

        print(f"{'='*70}")
        print(f"  Total: {len(records)}  Displayed: {min(limit, len(records))}")
        print(f"  With images: {sum(1 for r in records if r.image_url)}")
        print(f"{'='*70}\n")

    except Exception as e:
        print(f"\n❌ Error occurred while scraping:")
        print(f"   {type(e).__name__}: {e}")
        print(f"\n📋 Full traceback:")
        traceback.print_exc()
        print()


def main():
    """Parse arguments and run the scraper."""
    parser = argparse.ArgumentParser(
        description="Run a rental site adapter for debugging",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_scraper.py --url "https://suumo.jp/jj/chintai/ichiran/..."
  python scripts/run_scraper.py --site goodrooms --html saved_page.html
        """,
    )
    parser.add_argument("--url", help="Search result URL")
    parser.add_argument("--site", help="Site slug (e.g., 'suumo', 'nifty')")
    parser.add_argument("--html", dest="html_file", help="Extract from a saved HTML file")
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of listings to display (default: 10)",
    )
    parser.add_argument("--log-level", default="INFO")

    args = parser.parse_args()
    if not args.url and not (args.site and args.html_file):
        parser.error("give --url, or --site together with --html")

    configure_logging(args.log_level)
    asyncio.run(run_scraper(args.url, args.site, args.html_file, args.limit))


if __name__ == "__main__":
    main()
