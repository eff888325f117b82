# scholance/database/db_connector.py
from sqlalchemy.orm import Session

from .database import SessionLocal


class DBConnector:
    """
    요청 하나당 하나의 DB 세션을 열고, 어떤 경로로 끝나든 반드시 닫는 Context Manager.

    사용 예시:
        with DBConnector() as session:
            repo = SqlalchemyProjectRepository(session)
    """
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self.session = None

    def __enter__(self) -> Session:
        self.session = self.session_factory()
        return self.session

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            if exc_type is not None:
                self.session.rollback()
            self.session.close()
            self.session = None
