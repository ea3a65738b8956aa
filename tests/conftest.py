from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from budget_hotel.config.settings import Settings
from budget_hotel.core.security import EncryptionService
from budget_hotel.db.base import Base, import_models
from budget_hotel.db.session import create_session_factory
from budget_hotel.models import (
    Booking,
    BookingStatus,
    DiscountType,
    Hotel,
    Package,
    PackageItem,
    PaymentStatus,
    Promotion,
    Room,
    RoomItem,
    RoomStatus,
    RoomType,
    Service,
    ServiceItem,
    User,
    UserRole,
)
from budget_hotel.schemas import Actor

TEST_ENCRYPTION_KEY = "test-encryption-key-0123456789-abcdef"
FIXED_NOW = datetime(2026, 3, 10, 14, 0, 0)
CUSTOMER_PHONE = "+60123456789"


class FakeClock:
    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def today(clock) -> date:
    return clock().date()


@pytest.fixture
def encryption():
    return EncryptionService(TEST_ENCRYPTION_KEY)


@pytest.fixture
def engine():
    import_models()
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db, encryption):
    """
    One hotel with:
    - Standard (RM 79.99): rooms 101, 102 and 103 (under maintenance)
    - Deluxe (RM 200.00): room 201
    - a weekend package on Deluxe with breakfast
    - two customers and one staff member
    """
    hotel = Hotel(name="Budget Inn", address="Jalan Test 1")
    db.add(hotel)
    db.flush()

    standard = RoomType(hotel_id=hotel.id, name="Standard", occupancy=2, base_price=Decimal("79.99"))
    deluxe = RoomType(hotel_id=hotel.id, name="Deluxe", occupancy=3, base_price=Decimal("200.00"))
    db.add_all([standard, deluxe])
    db.flush()

    rooms = {
        "101": Room(room_number="101", room_type_id=standard.id),
        "102": Room(room_number="102", room_type_id=standard.id),
        "103": Room(room_number="103", room_type_id=standard.id, status=RoomStatus.UNDER_MAINTENANCE),
        "201": Room(room_number="201", room_type_id=deluxe.id),
    }
    db.add_all(rooms.values())

    breakfast = Service(name="Breakfast", price=Decimal("25.00"))
    db.add(breakfast)
    db.flush()

    package = Package(name="Weekend Getaway", total_price=Decimal("350.00"), is_active=True)
    package.items = [
        PackageItem.from_line(RoomItem(room_type_id=deluxe.id, quantity=1)),
        PackageItem.from_line(ServiceItem(service_id=breakfast.id, quantity=2)),
    ]
    db.add(package)

    customer = User(
        email="alice@example.com",
        full_name="Alice Tan",
        role=UserRole.CUSTOMER,
        phone_number_encrypted=encryption.encrypt(CUSTOMER_PHONE),
    )
    other = User(email="bob@example.com", full_name="Bob Lim", role=UserRole.CUSTOMER)
    staff = User(email="staff@example.com", full_name="Front Desk", role=UserRole.STAFF)
    db.add_all([customer, other, staff])
    db.commit()

    return SimpleNamespace(
        hotel=hotel,
        standard=standard,
        deluxe=deluxe,
        rooms=rooms,
        breakfast=breakfast,
        package=package,
        customer=customer,
        other=other,
        staff=staff,
    )


@pytest.fixture
def customer_actor(seed) -> Actor:
    return Actor(
        user_id=seed.customer.id,
        role=UserRole.CUSTOMER,
        device_fingerprint="fp-alice",
        ip_address="10.0.0.1",
    )


@pytest.fixture
def staff_actor(seed) -> Actor:
    return Actor(user_id=seed.staff.id, role=UserRole.STAFF, ip_address="10.0.0.99")


@pytest.fixture
def make_promotion(db, clock):
    def _make(**overrides) -> Promotion:
        fields = dict(
            code="SAVE10",
            discount_type=DiscountType.PERCENTAGE,
            value=Decimal("10"),
            start_date=clock() - timedelta(days=1),
            end_date=clock() + timedelta(days=30),
            is_active=True,
            limit_per_phone_number=False,
            limit_per_payment_card=False,
            limit_per_device=False,
            limit_per_user_account=False,
            max_uses_per_limit=1,
        )
        fields.update(overrides)
        promotion = Promotion(**fields)
        db.add(promotion)
        db.commit()
        return promotion

    return _make


@pytest.fixture
def make_booking(db, seed, today):
    def _make(
        room=None,
        user=None,
        check_in=None,
        nights=2,
        status=BookingStatus.CONFIRMED,
        total_price=Decimal("159.98"),
        **overrides,
    ) -> Booking:
        check_in = check_in or today + timedelta(days=1)
        fields = dict(
            user_id=(user or seed.customer).id,
            room_id=(room or seed.rooms["101"]).id,
            check_in_date=check_in,
            check_out_date=check_in + timedelta(days=nights),
            total_price=total_price,
            status=status,
            payment_status=(
                PaymentStatus.COMPLETED if status != BookingStatus.PENDING else PaymentStatus.PENDING
            ),
        )
        fields.update(overrides)
        booking = Booking(**fields)
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def settings():
    return Settings(
        ENCRYPTION_KEY=TEST_ENCRYPTION_KEY,
        DATABASE_URL="sqlite://",
        SWEEP_ENABLED=False,
        ENVIRONMENT="testing",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def client(settings, engine, clock, seed):
    from budget_hotel.main import create_app

    app = create_app(settings=settings, engine=engine, clock=clock)
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user, role: UserRole = UserRole.CUSTOMER) -> dict:
        return {"X-User-Id": str(user.id), "X-User-Role": role.value}

    return _headers
