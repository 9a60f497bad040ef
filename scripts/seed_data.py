import argparse
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import delete, select

from pharmapos.core.logging import setup_logging
from pharmapos.database import Base, engine, session_scope
from pharmapos.models import Drug, Sale, SaleItem, import_all_models


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample drug inventory.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing drugs and sales before seeding.",
    )
    return parser.parse_args()


def sample_drugs():
    today = date.today()
    return [
        Drug(
            name="Paracetamol 500mg",
            category="Analgesic",
            price=Decimal("5.50"),
            quantity=200,
            expiry_date=today + timedelta(days=540),
            description="Pain and fever relief, 10 tablets per strip.",
        ),
        Drug(
            name="Amoxicillin 250mg",
            category="Antibiotic",
            price=Decimal("18.00"),
            quantity=60,
            expiry_date=today + timedelta(days=20),
            description="Capsules, prescription only.",
        ),
        Drug(
            name="Cetirizine 10mg",
            category="Antihistamine",
            price=Decimal("7.25"),
            quantity=8,
            expiry_date=today + timedelta(days=365),
        ),
        Drug(
            name="Oral Rehydration Salts",
            category="Electrolyte",
            price=Decimal("2.00"),
            quantity=150,
        ),
        Drug(
            name="Ibuprofen 400mg",
            category="Analgesic",
            price=Decimal("9.80"),
            quantity=0,
            expiry_date=today - timedelta(days=10),
        ),
    ]


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        if args.reset:
            db.execute(delete(SaleItem))
            db.execute(delete(Sale))
            db.execute(delete(Drug))
            db.commit()

        has_drug = db.execute(select(Drug.id).limit(1)).first()
        if has_drug:
            print("Seed skipped: drugs already exist.")
            return

        drugs = sample_drugs()
        db.add_all(drugs)
        db.commit()
        print(f"Seed data created: {len(drugs)} drugs.")


if __name__ == "__main__":
    main()
