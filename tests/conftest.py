import io
import zipfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from sleeptrack.core import security
from sleeptrack.core.config import settings
from sleeptrack.core.db import Database, get_db
from sleeptrack.main import app
from sleeptrack.models.user import User

EXPORT_HEADER = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE HealthData [
<!ELEMENT HealthData (ExportDate,Record*)>
]>
<HealthData locale="en_US">
 <ExportDate value="2024-01-20 09:00:00 +0000"/>
"""


def sleep_record(start, end, value="HKCategoryValueSleepAnalysisAsleepCore", source="Apple Watch"):
    source_attr = f' sourceName="{source}"' if source is not None else ""
    return (
        f' <Record type="HKCategoryTypeIdentifierSleepAnalysis"{source_attr}'
        f' startDate="{start}" endDate="{end}" value="{value}"/>\n'
    )


def export_xml(*records):
    return EXPORT_HEADER + "".join(records) + "</HealthData>\n"


def make_export_zip(xml=None, document="apple_health_export/export.xml"):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        if xml is not None:
            zf.writestr(document, xml)
        zf.writestr("apple_health_export/electrocardiograms/readme.txt", "ecg")
    return buf.getvalue()


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(security, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def scratch_root(tmp_path, monkeypatch):
    root = tmp_path / "scratch"
    root.mkdir()
    monkeypatch.setattr(settings, "IMPORT_SCRATCH_DIR", str(root))
    return root


@pytest.fixture
def database():
    db = Database("sqlite://", poolclass=StaticPool)
    db.create_all()
    yield db
    db.engine.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(database):
    def override_get_db():
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def create_user(session, email="sam@example.com", password="s3cret-pass", name="Sam"):
    user = User(name=name, email=email, password_hash=security.hash_password(password))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def user(db_session):
    return create_user(db_session)


@pytest.fixture
def auth_headers(db_session, user):
    token = security.issue_token(db_session, user)
    return {"Authorization": f"Bearer {token.token}"}
