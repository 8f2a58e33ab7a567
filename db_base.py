from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    """
    Base class for all ORM models (holders, assets, custody events).

    Kept free of engine/session imports so Alembic and the reset script can
    import Base without pulling in async drivers.
    """
    pass
