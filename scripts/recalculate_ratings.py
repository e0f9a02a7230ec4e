#!/usr/bin/env python3
"""
Rating Reconciliation Script

Rebuilds average_rating and total_reviews for every book from the
reviews table, removing any drift left by incremental updates.

USAGE:
    python scripts/recalculate_ratings.py
"""

import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bookreview.database import SessionLocal
from bookreview.services.cache import invalidate_all_book_caches
from bookreview.services.ratings import recompute_all


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    db = SessionLocal()
    try:
        count = recompute_all(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    invalidate_all_book_caches()
    print(f"Recalculated ratings for {count} books.")


if __name__ == "__main__":
    main()
