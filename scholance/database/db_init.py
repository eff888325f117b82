import logging

from .database import engine, Base
from . import models  # noqa: F401  (테이블 등록을 위해 모델을 임포트)

logger = logging.getLogger(__name__)


def initialize_db():
    """
    DB와 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    사용자, 조직, 프로젝트 데이터는 요청을 통해서만 만들어지므로 기본 데이터는 넣지 않습니다.
    """
    logger.info("Initializing database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready.")


if __name__ == '__main__':
    from scholance.config import configure_logging
    configure_logging()
    initialize_db()
