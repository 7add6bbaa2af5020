import os
import uuid
from datetime import date

os.environ.setdefault("TESTING", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from staydesk.core.security import create_access_token
from staydesk.database import get_db
from staydesk.db.base import Base
from staydesk.main import app
from staydesk.models import DocumentType, Property, PropertyStatus, Sex, User, UserRole
from staydesk.schemas.reservation import ReservationCreate
from staydesk.services.identifiers import generate_public_id
from staydesk.services.reservation_service import create_reservation

TEST_DATABASE_URL = "sqlite://"

_COMPLETE_GUEST = {
    "firstname": "Amina",
    "lastname": "Benali",
    "birth_date": date(1990, 4, 12),
    "sex": Sex.FEMALE,
    "nationality": "Moroccan",
    "email": "amina@example.com",
    "phone": "+212600000000",
    "residence_country": "Morocco",
    "residence_city": "Rabat",
    "residence_address": "12 Avenue Hassan II",
    "residence_postal_code": "10000",
    "document_type": DocumentType.CIN,
    "document_number": "AB123456",
    "document_issue_date": date(2015, 6, 1),
}


@pytest.fixture()
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ==================== Factories ====================

@pytest.fixture()
def make_user(db):
    def _make(role: UserRole = UserRole.CLIENT, **kwargs) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            id=uuid.uuid4(),
            role=role,
            email=kwargs.pop("email", f"{role.value}-{suffix}@example.com"),
            firstname=kwargs.pop("firstname", role.value.title()),
            lastname=kwargs.pop("lastname", suffix),
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture()
def make_property(db, make_user):
    def _make(owner: User = None, **kwargs) -> Property:
        owner = owner or make_user()
        prop = Property(
            id=uuid.uuid4(),
            client_id=owner.id,
            hash_id=generate_public_id(),
            name=kwargs.pop("name", "Riad Zitoun"),
            place_name=kwargs.pop("place_name", "Marrakech"),
            capacity=kwargs.pop("capacity", 4),
            status=kwargs.pop("status", PropertyStatus.ENABLED),
            **kwargs,
        )
        db.add(prop)
        db.commit()
        return prop
    return _make


@pytest.fixture()
def make_reservation(db):
    def _make(prop: Property, start: date, end: date, **kwargs):
        payload = ReservationCreate(
            property_id=prop.id,
            start_date=start,
            end_date=end,
            total_price=kwargs.pop("total_price", 500.0),
            **kwargs,
        )
        return create_reservation(db, payload, prop.client_id)
    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}
    return _headers


@pytest.fixture()
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture()
def complete_guest():
    """Every required guest field filled in."""
    return dict(_COMPLETE_GUEST)
