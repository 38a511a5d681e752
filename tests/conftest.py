import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from database import Database
from mailer import Mailer


@pytest.fixture
def db():
    return Database(name="care_xyz_test", client=mongomock.MongoClient())


@pytest.fixture
def mailer():
    return Mailer()


@pytest.fixture
def client(db, mailer):
    previous = (main.app.state.database, main.app.state.mailer)
    main.app.state.database = db
    main.app.state.mailer = mailer
    with TestClient(main.app) as c:
        yield c
    main.app.state.database, main.app.state.mailer = previous


@pytest.fixture
def admin(db):
    db.ensure_connected()
    db.users.insert_one({"email": "admin@carexyz.com", "role": "admin"})
    return {"X-User-Email": "admin@carexyz.com"}
