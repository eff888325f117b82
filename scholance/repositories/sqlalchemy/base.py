from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session


class SqlalchemyRepository:
    """
    세션 하나를 공유하는 리포지토리들의 공통 커밋 경로.

    커밋이 실패하면 같은 요청 안의 다음 쓰기(보상 단계, best-effort 단계 포함)가
    계속 이 세션을 사용할 수 있도록 즉시 롤백한 뒤 원래 예외를 다시 던집니다.
    """
    def __init__(self, db_session: Session):
        self.db = db_session

    def _commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _persist(self, model):
        self.db.add(model)
        self._commit()
        self.db.refresh(model)
        return model

    def delete(self, model) -> bool:
        if model:
            self.db.delete(model)
            self._commit()
            return True
        return False
