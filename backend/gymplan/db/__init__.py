from gymplan.db.session import async_session_maker, init_db
from gymplan.db.base import Base

__all__ = ["Base", "async_session_maker", "init_db"]
