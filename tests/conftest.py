import io
import os
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from jose import jwt

from app.config import JWT_ALGORITHM, JWT_AUDIENCE, SUPABASE_JWT_SECRET
from app.database import Base, SessionLocal, engine
from app.main import app
from app.models import FamilyGroup, Organization, Supervisor, User, UserOrganization


class FakeR2:
    """In-memory stand-in for the boto3 S3 client"""

    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[Key] = Body

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://r2.test/{Params['Key']}?expires={ExpiresIn}"


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def sent_emails():
    with patch("app.email_service.send_email", new=AsyncMock(return_value={"id": "email-test"})) as mock:
        yield mock


@pytest.fixture
def storage():
    fake = FakeR2()
    with patch("app.utils.storage.get_r2_client", return_value=fake), patch(
        "app.utils.storage.is_storage_configured", return_value=True
    ):
        yield fake


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def make_token(user: User) -> str:
    claims = {
        "sub": user.auth_user_id,
        "email": user.email,
        "aud": JWT_AUDIENCE,
        "exp": datetime.utcnow() + timedelta(hours=1),
    }
    return jwt.encode(claims, SUPABASE_JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}


def create_user(db, name: str, family_group=None) -> User:
    user = User(
        auth_user_id=f"auth-{name}",
        email=f"{name}@example.com",
        first_name=name.capitalize(),
        family_group=family_group,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_member(db, user: User, organization: Organization, role: str = "member") -> None:
    db.add(
        UserOrganization(user_id=user.id, organization_id=organization.id, role=role, is_primary=True)
    )
    db.commit()


@pytest.fixture
def org(db):
    organization = Organization(name="Lakeside Cabin", code="LAKE01")
    db.add(organization)
    db.commit()
    db.refresh(organization)
    return organization


@pytest.fixture
def admin(db, org):
    user = create_user(db, "admin")
    add_member(db, user, org, "admin")
    return user


@pytest.fixture
def treasurer(db, org):
    user = create_user(db, "treasurer")
    add_member(db, user, org, "treasurer")
    return user


@pytest.fixture
def keeper(db, org):
    user = create_user(db, "keeper")
    add_member(db, user, org, "calendar_keeper")
    return user


@pytest.fixture
def smith_member(db, org):
    user = create_user(db, "smithy", family_group="Smith")
    add_member(db, user, org)
    return user


@pytest.fixture
def jones_member(db, org):
    user = create_user(db, "jonesy", family_group="Jones")
    add_member(db, user, org)
    return user


@pytest.fixture
def outsider(db):
    return create_user(db, "outsider")


@pytest.fixture
def supervisor(db):
    user = create_user(db, "super")
    db.add(Supervisor(email=user.email, name="Super Visor"))
    db.commit()
    return user


@pytest.fixture
def groups(db, org):
    names = ["Smith", "Jones", "Lee"]
    for name in names:
        db.add(
            FamilyGroup(
                organization_id=org.id,
                name=name,
                lead_name=f"{name} Lead",
                lead_email=f"{name.lower()}.lead@example.com",
                host_members=[],
            )
        )
    db.commit()
    return names
