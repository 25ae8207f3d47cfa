import argparse
import sys
from decimal import Decimal
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import select

from warehouse.core.exceptions import InventoryError
from warehouse.core.logging import setup_logging
from warehouse.core.requests import LineRequest, TransactionRequest
from warehouse.database import init_schema, session_scope
from warehouse.models.item import Item
from warehouse.schemas.item import ItemCreate
from warehouse.services.item_service import create_item
from warehouse.services.posting_service import post_purchase
from warehouse.services.user_service import find_by_email

SAMPLE_ITEMS = (
    ("Printer paper A4", "ream", Decimal("42000"), Decimal("48000"), 40),
    ("Ballpoint pen, black", "box", Decimal("18500"), Decimal("22000"), 25),
    ("Stapler", "pcs", Decimal("27500"), Decimal("35000"), 10),
)


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample items and an opening purchase.")
    parser.add_argument(
        "--admin-email",
        required=True,
        help="Existing user recorded as the author of the opening purchase.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    init_schema()
    try:
        with session_scope() as db:
            user = find_by_email(db, args.admin_email)
            if user is None:
                raise SystemExit(f"No user with email {args.admin_email}; run create_admin.py first.")

            has_item = db.execute(select(Item.id).limit(1)).first()
            if has_item:
                print("Seed skipped: items already exist.")
                return

            lines = []
            for name, unit, purchase_price, sale_price, opening_qty in SAMPLE_ITEMS:
                item = create_item(
                    db,
                    ItemCreate(
                        name=name,
                        unit=unit,
                        purchase_price=purchase_price,
                        sale_price=sale_price,
                    ),
                )
                lines.append(LineRequest(item_id=item.id, quantity=opening_qty, unit_price=purchase_price))

            result = post_purchase(
                db,
                TransactionRequest(counterparty="Opening stock", lines=lines),
                user.id,
            )
            print(f"Seed data created: {len(lines)} items, opening purchase {result.header.document_number}.")
    except InventoryError as exc:
        raise SystemExit(f"Seed failed: {exc}") from exc


if __name__ == "__main__":
    main()
