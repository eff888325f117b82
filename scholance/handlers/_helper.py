# scholance/handlers/_helper.py
"""
핸들러 공통 유틸리티: 응답 생성, 요청 해석, 예외 -> 응답 변환, 서비스 의존성 구성.

모든 핸들러는 Lambda 시그니처 `handler(event, context) -> response`를 따르며,
한 번의 호출에서 DB 세션을 하나 열고 어떤 경로로 끝나든 닫습니다.
"""
import functools
import json
import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from scholance import auth
from scholance.database.db_connector import DBConnector
from scholance.repositories.sqlalchemy import (
    SqlalchemyProjectRepository, SqlalchemyUserRepository, SqlalchemyOrganizationRepository,
)
from scholance.services.asset_service import AssetService
from scholance.services.storage_service import StorageService
from scholance.services.project_service import ProjectService
from scholance.services.entry_service import EntryService
from scholance.services.organization_service import OrganizationService
from scholance.services.user_service import UserService
from scholance.services.exceptions import (
    ServiceError, AuthenticationError, AuthorizationError, InvalidIdError,
)

logger = logging.getLogger(__name__)

HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Content-Type': 'application/json',
}

ID_PATTERN = re.compile(r'[A-Za-z0-9_-]+')

# 스토리지 클라이언트는 호출 간에 재사용합니다.
_storage_service = StorageService()

# --------------------------------------------------------------------------
## 응답 생성
# --------------------------------------------------------------------------

def create_success_response(status_code: int = 200, body: Any = None) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': dict(HEADERS),
        'body': '' if status_code == 204 else json.dumps(body),
    }


def create_error_response(status_code: int, message: str) -> Dict[str, Any]:
    return {
        'statusCode': status_code or 500,
        'headers': dict(HEADERS),
        'body': json.dumps({'message': message}),
    }


def handle_exception(e: Exception) -> Dict[str, Any]:
    """
    서비스/인프라 예외를 HTTP 응답으로 변환합니다.

    ValueError(잘못된 JSON, 객체가 아닌 본문)는 응답으로 바꾸지 않고 호출자에게 그대로 던집니다.
    """
    if isinstance(e, ServiceError):
        if e.status_code >= 500:
            logger.error("%s: %s", type(e).__name__, e.message)
        return create_error_response(e.status_code, e.message)
    if isinstance(e, SQLAlchemyError):
        logger.error("Database error: %s", e)
        return create_error_response(503, 'There was an error connecting to the database')
    if isinstance(e, ValueError):
        raise e
    logger.exception("Unexpected error")
    return create_error_response(500, 'Internal server error')


def lambda_handler(func):
    """핸들러에서 발생한 예외를 단일 응답으로 변환하는 데코레이터."""
    @functools.wraps(func)
    def wrapper(event, context=None):
        try:
            return func(event or {}, context)
        except Exception as e:
            return handle_exception(e)
    return wrapper

# --------------------------------------------------------------------------
## 요청 해석
# --------------------------------------------------------------------------

def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """JSON 본문을 딕셔너리로 해석합니다. 본문이 없으면 빈 딕셔너리. 객체가 아니면 ValueError."""
    body = event.get('body')
    if not body:
        return {}
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object.")
    return data


def path_param(event: Dict[str, Any], name: str) -> str:
    value = (event.get('pathParameters') or {}).get(name)
    if not value or not ID_PATTERN.fullmatch(value):
        raise InvalidIdError('Incorrect id')
    return value


def query_params(event: Dict[str, Any]) -> Dict[str, Any]:
    return event.get('queryStringParameters') or {}


def require_auth_id(event: Dict[str, Any]) -> str:
    auth_id = auth.get_auth_id(event)
    if not auth_id:
        raise AuthenticationError('No authentication found')
    return auth_id


def require_scope(event: Dict[str, Any], scope: str, message: str, auth_id: Optional[str] = None):
    if not auth.scopes_contain_scope(auth.get_scopes(event), scope):
        logger.info("User '%s' lacks scope '%s'", auth_id, scope)
        raise AuthorizationError(message)


def require_self(auth_id: str, user_id: str, message: str):
    if not auth.is_owner(auth_id, user_id):
        logger.info("User '%s' tried to act as '%s'", auth_id, user_id)
        raise AuthorizationError(message)

# --------------------------------------------------------------------------
## 의존성 구성 (Repositories -> Services)
# --------------------------------------------------------------------------

@contextmanager
def open_services():
    """요청 하나 동안 사용할 서비스 묶음을 만들고, 끝나면 DB 세션을 닫습니다."""
    with DBConnector() as db_session:
        project_repo = SqlalchemyProjectRepository(db_session)
        user_repo = SqlalchemyUserRepository(db_session)
        organization_repo = SqlalchemyOrganizationRepository(db_session)
        asset_service = AssetService()

        yield {
            'project': ProjectService(project_repo, user_repo, organization_repo, _storage_service, asset_service),
            'entry': EntryService(project_repo, user_repo, _storage_service, asset_service),
            'organization': OrganizationService(organization_repo, user_repo),
            'user': UserService(user_repo, project_repo, organization_repo),
        }
