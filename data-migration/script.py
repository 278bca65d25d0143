"""
Seed ledgers from normalized CSV files.

Each CSV file in the folder is named after the user it belongs to
(`<user_id>.csv`, e.g. `7.csv`) and holds that user's historical
transactions with the columns date, type, amount and, optionally,
category_id and description.

Usage (from the project root):
    python data-migration/script.py [folder]
"""


from __future__ import annotations

import logging
import sys
from pathlib import Path

from db import SessionLocal, engine, Base
from app.services.ledger_import import import_ledger_csv
from app.services.ledger_store import LedgerStore


NORMALIZED_DIR = Path("data-migration/normalized")

logger = logging.getLogger("data-migration")


def import_normalized_csvs_to_db(folder: Path = NORMALIZED_DIR) -> int:
    folder = Path(folder)
    csv_files = sorted(folder.glob("*.csv"))
    if not csv_files:
        raise FileNotFoundError(f"No CSV files found in: {folder.resolve()}")

    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    total_inserted = 0

    try:
        store = LedgerStore(session)
        for f in csv_files:
            if not f.stem.isdigit():
                logger.warning("skipping %s: file name is not a user id", f.name)
                continue
            total_inserted += import_ledger_csv(store, f, int(f.stem))

        logger.info("DONE. Total inserted: %d", total_inserted)
    finally:
        session.close()

    return total_inserted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    import_normalized_csvs_to_db(Path(sys.argv[1]) if len(sys.argv) > 1 else NORMALIZED_DIR)
