from datetime import datetime
from pathlib import Path
import sys
import os

import pytest
from flask import g
from werkzeug.security import generate_password_hash

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Safety default for any module-level app creation during test imports.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from midpoint import create_app
from midpoint.extensions import db
from midpoint.models import Station, User
from midpoint.stores import InMemoryMeetingStore, StaticStationCatalog
from midpoint.stores.records import StationRecord


@pytest.fixture()
def app(tmp_path: Path):
    db_file = tmp_path / "test.sqlite3"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
        }
    )

    # Requests reuse the fixture's app context, so g would keep the last
    # logged-in user across clients.
    @app.before_request
    def reset_cached_login():
        g.pop("_login_user", None)

    with app.app_context():
        driver = db.engine.url.drivername
        if driver != "sqlite":
            raise RuntimeError(
                f"Test database must be SQLite, got '{driver}'. Refusing to run destructive test setup."
            )
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db_session(app):
    with app.app_context():
        yield db.session


@pytest.fixture()
def user(db_session):
    user = User(
        username="alice",
        email="alice@example.com",
        password_hash=generate_password_hash("correct-horse", method="pbkdf2:sha256"),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def other_user(db_session):
    user = User(
        username="bob",
        email="bob@example.com",
        password_hash=generate_password_hash("battery-staple", method="pbkdf2:sha256"),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def auth_client(client, user):
    with client.session_transaction() as session:
        session["_user_id"] = str(user.id)
        session["_fresh"] = True
    return client


@pytest.fixture()
def other_client(app, other_user):
    client = app.test_client()
    with client.session_transaction() as session:
        session["_user_id"] = str(other_user.id)
        session["_fresh"] = True
    return client


# Seoul subway stations strung out east of City Hall.
STATIONS = [
    ("City Hall", "1", 37.5657, 126.9769),
    ("Jonggak", "1", 37.5702, 126.9831),
    ("Jongno 3-ga", "1", 37.5715, 126.9917),
    ("Jongno 5-ga", "1", 37.5709, 127.0019),
    ("Dongdaemun", "1", 37.5717, 127.0110),
    ("Dongmyo", "1", 37.5733, 127.0165),
    ("Sinseol-dong", "1", 37.5760, 127.0243),
]


@pytest.fixture()
def stations(db_session):
    rows = [Station(name=name, line=line, lat=lat, lng=lng) for name, line, lat, lng in STATIONS]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture()
def memory_store():
    return InMemoryMeetingStore()


@pytest.fixture()
def catalog():
    return StaticStationCatalog(
        StationRecord(name=name, line=line, lat=lat, lng=lng)
        for name, line, lat, lng in STATIONS
    )


@pytest.fixture()
def schedule():
    return datetime(2026, 11, 1, 18, 0), datetime(2026, 11, 1, 21, 0)
