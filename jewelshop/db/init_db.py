"""Create all tables. Run on app startup.

Users live in the external auth provider, so there is nothing to seed here.
"""
from jewelshop.db.base import Base
from jewelshop.db.session import engine
import jewelshop.models  # noqa: F401 - register models


def init_db():
    Base.metadata.create_all(bind=engine)
