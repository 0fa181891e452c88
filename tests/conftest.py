import os
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base
from tests.models import Customer, Order, Profile, Team


@pytest.fixture(scope="session")
def engine():
    database_url = os.getenv("TEST_DATABASE_URL")
    if database_url:
        engine = create_engine(database_url)
    else:
        engine = create_engine(
            "sqlite+pysqlite://",
            connect_args={
                "check_same_thread": False,
            },
            poolclass=StaticPool,
        )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def teams(db_session):
    alpha = Team(name="Alpha", region="North")
    beta = Team(name="Beta", region="South")
    db_session.add_all([alpha, beta])
    db_session.commit()
    return {"alpha": alpha, "beta": beta}


@pytest.fixture()
def customers(db_session, teams):
    """Four active customers over two teams, plus one soft-deleted customer."""
    rows = [
        Customer(
            first_name="Ann",
            last_name="Zimmer",
            email="ann@x.com",
            status="active",
            is_vip=True,
            balance=Decimal("10.50"),
            team=teams["beta"],
        ),
        Customer(
            first_name="Bob",
            last_name="Young",
            email="bob@x.com",
            status="active",
            is_vip=False,
            balance=Decimal("20.00"),
            team=teams["alpha"],
        ),
        Customer(
            first_name="Cid",
            last_name="Xu",
            email="cid@y.org",
            status="suspended",
            is_vip=False,
            balance=None,
            team=teams["beta"],
        ),
        Customer(
            first_name="Dee",
            last_name="Walsh",
            email="dee@y.org",
            status="active",
            is_vip=True,
            balance=Decimal("5.25"),
            team=teams["alpha"],
        ),
    ]
    trashed = Customer(
        first_name="Eve",
        last_name="Vance",
        email="eve@x.com",
        status="active",
        is_vip=False,
        balance=Decimal("1.00"),
        team=teams["alpha"],
    )
    db_session.add_all([*rows, trashed])
    db_session.flush()
    trashed.soft_delete()
    db_session.add_all(
        [
            Profile(customer=rows[0], nickname="annie", city="Lagos"),
            Profile(customer=rows[1], nickname="bobby", city="Abuja"),
            Order(customer=rows[0], reference="A-1", total=Decimal("12.00")),
            Order(customer=rows[0], reference="A-2", total=Decimal("8.00")),
            Order(customer=rows[1], reference="B-1", total=Decimal("30.00")),
        ]
    )
    db_session.commit()
    return {
        "ann": rows[0],
        "bob": rows[1],
        "cid": rows[2],
        "dee": rows[3],
        "eve": trashed,
    }
