from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Bookings, payment logs, coupons and the read-only asset tables (halls,
    services) all share this metadata, which Alembic uses for migrations.
    """

    pass
