from decimal import Decimal

from sqlalchemy.orm import sessionmaker

from warehouse.core.security import hash_password
from warehouse.database import build_engine, init_schema
from warehouse.models.item import Item
from warehouse.models.stock_balance import StockBalance
from warehouse.models.user import ROLE_STAFF, User

TEST_PASSWORD = "gudang123!"


def make_engine(database_url: str = "sqlite:///:memory:"):
    engine = build_engine(database_url)
    init_schema(bind=engine)
    return engine


def make_sessionmaker(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def add_user(db, username="gudang", role=ROLE_STAFF, email=None, password=TEST_PASSWORD) -> User:
    user = User(
        username=username,
        email=email or "{}@example.com".format(username),
        password_hash=hash_password(password, rounds=1000),
        full_name=username.title(),
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def add_item(
    db,
    item_id=None,
    name="Kertas A4",
    purchase_price="100.00",
    sale_price="120.00",
    stock=0,
) -> Item:
    item = Item(
        id=item_id,
        name=name,
        unit="pcs",
        purchase_price=Decimal(purchase_price),
        sale_price=Decimal(sale_price),
    )
    db.add(item)
    db.flush()
    item.code = "BRG{:03d}".format(item.id)
    db.add(StockBalance(item_id=item.id, quantity=stock, version=0))
    db.commit()
    return item
