"""Pytest configuration and fixtures."""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

# Load test environment variables before importing any application code
load_dotenv(".env.test", override=True)

from src.config.database import Base  # noqa: E402
from src.config.settings import settings  # noqa: E402
from src.models.account import Account  # noqa: E402
import src.models  # noqa: E402,F401


@pytest.fixture
def sqlite_db(tmp_path):
    """
    File-backed SQLite database wired into get_db().

    Every repository created while the fixture is active gets its own
    session on this database, so services behave as they do against
    PostgreSQL (minus row locks). Foreign keys are enforced and service
    runs are written to the service_runs table.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'reactlyve_test.db'}")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with patch("src.config.database.SessionLocal", TestSessionLocal):
        yield TestSessionLocal

    engine.dispose()


@pytest.fixture
def s3_client():
    """Mock boto3 S3 client handed to every MediaStorageService."""
    client = MagicMock()
    client.delete_objects.side_effect = lambda Bucket, Delete: {
        "Deleted": [{"Key": obj["Key"]} for obj in Delete["Objects"]]
    }

    with patch("src.services.integrations.media_storage.boto3") as mock_boto3:
        mock_boto3.client.return_value = client
        with patch.object(settings, "S3_BUCKET_NAME", "reactlyve-test"):
            with patch.object(settings, "S3_PUBLIC_BASE_URL", "https://media.example.com"):
                yield client


@pytest.fixture
def make_account(sqlite_db):
    """Insert an account row directly. Returns its id."""

    def _make_account(**fields):
        session = sqlite_db()
        values = {
            "email": f"{uuid.uuid4().hex[:8]}@example.com",
            "role": "user",
            "content_count_this_month": 0,
            "reactions_received_this_month": 0,
        }
        values.update(fields)

        account = Account(**values)
        session.add(account)
        session.commit()
        account_id = account.id
        session.close()
        return account_id

    return _make_account
