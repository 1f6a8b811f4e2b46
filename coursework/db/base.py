# import models so SQLAlchemy registers them on Base.metadata
from coursework.db.base_class import Base  # noqa: F401
from coursework.models import assignment, course, enrollment, submission, user  # noqa: F401
