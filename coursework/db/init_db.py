from coursework.db.base import Base
from coursework.db.session import engine


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
