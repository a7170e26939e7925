from sqlalchemy.orm import Session

_DEPTH_KEY = "unit_of_work_depth"


class SqlAlchemyUnitOfWork:
    """
    Commit on success, rollback on error.

    Nested blocks on the same session join the outer one: only the outermost
    block commits, so a service can call another service's write operation
    inside its own transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def __enter__(self):
        self.db.info[_DEPTH_KEY] = self.db.info.get(_DEPTH_KEY, 0) + 1
        return self

    def __exit__(self, exc_type, exc, tb):
        depth = self.db.info[_DEPTH_KEY] - 1
        self.db.info[_DEPTH_KEY] = depth
        if depth > 0:
            return False

        if exc_type is None:
            self.db.commit()
        else:
            self.db.rollback()
        return False
