"""Create all tables. Run on app startup."""
from khatabook.db.base import Base
from khatabook.db.session import engine
from khatabook.models import user, customer, transaction  # noqa: F401 - register models


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
