"""
Seed the company store from a JSON file.

Each record is validated with the same model the API uses for creation.
Invalid records are reported and skipped.

Usage:
    python backend/scripts/seed_companies.py backend/data/companies.json
    python backend/scripts/seed_companies.py backend/data/companies.json --reset
"""
import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from company_api.dependencies import create_store, prepare_store
from company_api.models.company import CompanyCreate
from company_api.stores import SQLiteCompanyStore


def load_records(path: Path) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise SystemExit(f"{path}: expected a JSON array of companies")
    return data


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the company store from JSON")
    parser.add_argument("source", type=Path, help="JSON file with an array of companies")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete the SQLite database file before seeding (SQLite backend only)",
    )
    args = parser.parse_args()

    store = create_store()
    if args.reset and isinstance(store, SQLiteCompanyStore) and store.path.exists():
        store.path.unlink()
        print(f"Removed {store.path}")
    prepare_store(store)

    inserted = 0
    skipped = 0
    for index, raw in enumerate(load_records(args.source)):
        try:
            payload = CompanyCreate.model_validate(raw)
        except ValidationError as e:
            skipped += 1
            print(f"  skip #{index}: {e.errors()[0]['msg']}")
            continue
        store.insert(payload.to_document())
        inserted += 1

    print(f"Inserted {inserted} companies, skipped {skipped}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
