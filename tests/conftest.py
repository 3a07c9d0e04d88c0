# tests/conftest.py
import os
from uuid import uuid4

# --- Configure env for tests *before* importing app code ---
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("AWS_REGION", "eu-west-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BOOTSTRAP_ADMIN_EMAIL", "admin@example.com")
# Ensure we always have a bucket name for tests
os.environ.setdefault("S3_BUCKET", f"ledger-test-{uuid4().hex}")

import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
import boto3

# Import after env is set so settings reads the values above
from app.config import settings
import app.main as app

from app.services.storage import save_version
from app.services.commitments import create_commitment
from app.models.schemas.user import User


def _empty_bucket(s3, bucket_name: str):
    """Helper: delete all objects in the bucket."""
    if not bucket_name:
        return
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket_name):
        for obj in page.get("Contents", []):
            s3.delete_object(Bucket=bucket_name, Key=obj["Key"])


@pytest.fixture(scope="session", autouse=True)
def aws_moto():
    """Global Moto for all tests (no real AWS calls)."""
    with mock_aws():
        yield


@pytest.fixture(scope="session", autouse=True)
def setup_s3(aws_moto):
    """Create the test bucket inside Moto."""
    bucket_name = settings.s3_bucket
    region = settings.aws_region
    s3 = boto3.client("s3", region_name=region)

    # us-east-1 doesn't need LocationConstraint; others do
    if region == "us-east-1":
        s3.create_bucket(Bucket=bucket_name)
    else:
        s3.create_bucket(
            Bucket=bucket_name,
            CreateBucketConfiguration={"LocationConstraint": region},
        )

    yield s3, bucket_name

    # Final cleanup
    _empty_bucket(s3, bucket_name)


@pytest.fixture(autouse=True)
def clean_bucket(setup_s3):
    """Ensure the bucket is empty before each test."""
    s3, bucket_name = setup_s3
    _empty_bucket(s3, bucket_name)
    yield


@pytest.fixture(scope="function")
def client():
    return TestClient(app.app)


def _register_and_login(client: TestClient, email: str, user_name: str, password: str):
    r = client.post("/users/register", json={"email": email, "user_name": user_name, "password": password})
    assert r.status_code == 200
    user_id = r.json()["user_id"]

    r = client.post("/users/login", json={"email": email, "password": password})
    assert r.status_code == 200
    tokens = r.json()
    return user_id, {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def user(client: TestClient):
    return _register_and_login(client, f"user-{uuid4().hex[:6]}@example.com", "user1", "Test123!")


@pytest.fixture
def auth_headers(user):
    return user[1]


@pytest.fixture
def another_user(client: TestClient):
    return _register_and_login(client, f"another-{uuid4().hex[:6]}@example.com", "anotheruser", "Another123!")


@pytest.fixture
def admin_user(client: TestClient):
    # The bootstrap email registers as admin
    return _register_and_login(client, settings.bootstrap_admin_email, "admin", "AdminTest123!")


@pytest.fixture
def owner():
    """A stored user for service-level tests that never go through HTTP."""
    owner = User(user_name="owner", email=f"owner-{uuid4().hex[:6]}@example.com", hashed_password="x")
    save_version(owner, "users", "user_id")
    return owner


@pytest.fixture
def admin():
    admin = User(user_name="root", email=f"root-{uuid4().hex[:6]}@example.com", hashed_password="x", is_superuser=True)
    save_version(admin, "users", "user_id")
    return admin


@pytest.fixture
def make_commitment(owner):
    def _make(owner_id=None, **overrides):
        definition = {
            "pay_for": "Car Loan",
            "pay_type": 1,
            "category": 1,
            "total_emi": 12,
            "emi_amount": "1000.00",
            "status": 1,
            "due_date": 5,
            **overrides,
        }
        return create_commitment(definition, owner_id=owner_id or owner.user_id)
    return _make
