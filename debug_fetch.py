"""
Debug script to fetch organizations end-to-end and save raw results to local files.

No UI, just org details, every repository page and the
aggregated language distribution, exactly as the dashboard would load them.
Results are saved as JSON files in the debug_output/ directory.

Usage:
    python debug_fetch.py vercel                 # Fetch one org
    python debug_fetch.py vercel facebook        # Fetch several orgs
    python debug_fetch.py vercel --max-pages=3   # Stop after 3 repository pages

Set GITHUB_TOKEN in the environment to raise the rate limit.
"""

import asyncio
import json
import os
import sys
import logging
from datetime import UTC, datetime
from typing import Dict, Any, List

from orgdash.config.settings import settings
from orgdash.dashboard.session import DashboardSession
from orgdash.github.errors import describe_error
from orgdash.models.github import GithubRepo
from orgdash.services.language_aggregator import top_languages
from orgdash.utils.helpers import format_percentage
from orgdash.utils.logger import setup_logger

# Setup logging
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
setup_logger("orgdash", level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), format_string=LOG_FORMAT)
logger = setup_logger("debug_fetch", format_string=LOG_FORMAT)

OUTPUT_DIR = os.path.join(os.path.dirname(__file__), "debug_output")
DEFAULT_MAX_PAGES = 5


def repo_to_dict(repo: GithubRepo) -> Dict[str, Any]:
    """Convert a GithubRepo to a JSON-serializable dict."""
    return {
        "id": repo.id,
        "full_name": repo.full_name,
        "html_url": repo.html_url,
        "description": repo.description,
        "stars": repo.stargazers_count,
        "forks": repo.forks_count,
        "language": repo.language,
        "updated_at": repo.updated_at.isoformat() if repo.updated_at else None,
    }


def save_results(org: str, data: Dict[str, Any], elapsed: float):
    """Save one org's results to a JSON file."""
    os.makedirs(OUTPUT_DIR, exist_ok=True)

    data = {
        "org": org,
        "fetched_at": datetime.now(UTC).isoformat(),
        "elapsed_seconds": round(elapsed, 2),
        **data,
    }

    filepath = os.path.join(OUTPUT_DIR, f"{org}.json")
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    logger.info(f"Saved {len(data['repos'])} repositories to {filepath}")


def print_summary(org: str, data: Dict[str, Any], elapsed: float):
    """Print a short summary table for an org."""
    repos = data["repos"]
    languages = data["top_languages"]

    print(f"\n{'='*60}")
    print(f"  {org.upper()} ({elapsed:.1f}s)")
    print(f"{'='*60}")
    if data.get("error"):
        print(f"  Error:               {data['error']}")
    print(f"  Repositories:        {len(repos)} ({data['pages']} page(s))")
    print(f"  More pages:          {data['has_next_page']}")

    if languages:
        print(f"\n  Top languages:")
        for lang in languages:
            print(f"    - {lang['name']:<20} {format_percentage(lang['percentage']):>8}")
    print()


async def fetch_org(org: str, max_pages: int) -> Dict[str, Any]:
    """Load an org through a fresh dashboard session."""
    async with DashboardSession(debounce_ms=0) as session:
        token = os.getenv("GITHUB_TOKEN")
        if token:
            session.set_token(token)

        snapshot = await session.search(org)
        pages = 1
        while snapshot.repos.has_next_page and pages < max_pages:
            snapshot = await session.load_more()
            pages += 1

        error = snapshot.repos.error or snapshot.details.error
        return {
            "details": {
                "login": snapshot.details.data.login,
                "name": snapshot.details.data.display_name,
                "public_repos": snapshot.details.data.public_repos,
            } if snapshot.details.data else None,
            "error": describe_error(error) if error else None,
            "pages": pages,
            "has_next_page": snapshot.repos.has_next_page,
            "repos": [repo_to_dict(r) for r in snapshot.sorted_repos],
            "languages": [
                {"name": lang.name, "bytes": lang.bytes, "percentage": lang.percentage}
                for lang in snapshot.languages.languages
            ],
            "top_languages": [
                {"name": lang.name, "percentage": lang.percentage}
                for lang in top_languages(snapshot.languages.languages)
            ],
            "rate_limit_remaining": session.api_client.rate_limit.remaining,
        }


async def run_org(org: str, max_pages: int):
    """Fetch a single org, time it, save results."""
    logger.info(f"Starting {org}...")
    start = asyncio.get_event_loop().time()
    try:
        data = await fetch_org(org, max_pages)
    except Exception as e:
        logger.error(f"{org} FAILED: {e}", exc_info=True)
        return
    elapsed = asyncio.get_event_loop().time() - start

    save_results(org, data, elapsed)
    print_summary(org, data, elapsed)


async def main():
    args = sys.argv[1:]

    max_pages = DEFAULT_MAX_PAGES
    for a in args:
        if a.startswith("--max-pages="):
            max_pages = max(int(a.split("=", 1)[1]), 1)

    orgs: List[str] = [a for a in args if not a.startswith("--")]
    if not orgs:
        print(__doc__)
        return

    print(f"\nFetching orgs: {orgs}")
    print(f"Output directory: {OUTPUT_DIR}\n")

    for org in orgs:
        await run_org(org, max_pages)

    # Final summary
    print(f"\n{'='*60}")
    print(f"  ALL DONE, results saved to {OUTPUT_DIR}/")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    asyncio.run(main())
