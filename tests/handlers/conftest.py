# tests/handlers/conftest.py
import json
import pytest
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

from scholance.services.project_service import ProjectService
from scholance.services.entry_service import EntryService
from scholance.services.organization_service import OrganizationService
from scholance.services.user_service import UserService


def build_event(principal_id=None, scope=None, path=None, body=None, query=None):
    """API Gateway 이벤트 형태의 딕셔너리를 만듭니다."""
    authorizer = {}
    if principal_id:
        authorizer["principalId"] = principal_id
    if scope:
        authorizer["scope"] = scope
    return {
        "pathParameters": path,
        "queryStringParameters": query,
        "body": body if body is None or isinstance(body, str) else json.dumps(body),
        "requestContext": {"authorizer": authorizer},
    }


@pytest.fixture
def make_event():
    """이벤트 생성 함수를 fixture로 제공합니다."""
    return build_event


@pytest.fixture
def services():
    """핸들러 모듈의 open_services를 모의 서비스 묶음을 돌려주는 context manager로 교체합니다."""
    mocks = {
        'project': MagicMock(spec=ProjectService),
        'entry': MagicMock(spec=EntryService),
        'organization': MagicMock(spec=OrganizationService),
        'user': MagicMock(spec=UserService),
    }

    @contextmanager
    def fake_open_services():
        yield mocks

    targets = ["project", "entry", "organization", "user"]
    patchers = [patch(f"scholance.handlers.{name}.open_services", fake_open_services) for name in targets]
    for patcher in patchers:
        patcher.start()
    yield mocks
    for patcher in patchers:
        patcher.stop()
