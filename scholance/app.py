# scholance/app.py
"""
로컬 개발용 WSGI 서버.

배포 환경에서는 API Gateway가 각 핸들러를 직접 호출하지만, 로컬에서는 이 라우터가
WSGI 요청을 같은 이벤트 형태로 바꿔 핸들러를 호출합니다. 상위 authorizer 대신
'X-Principal-Id'와 'X-Scope' 헤더로 인증 정보를 넣습니다.
"""
import logging
import re
import sys
from http import HTTPStatus
from urllib.parse import parse_qsl
from wsgiref.simple_server import make_server

from scholance.config import configure_logging
from scholance.database.db_init import initialize_db
from scholance.handlers import project, entry, organization, user

logger = logging.getLogger(__name__)

ID = r'[A-Za-z0-9_-]+'

# (method, path pattern, handler) - 경로 변수는 named group으로 pathParameters가 됩니다.
ROUTES = [
    ('GET', r'^/projects$', project.list_projects),
    ('POST', r'^/projects$', project.create_project),
    ('GET', rf'^/projects/(?P<project_id>{ID})$', project.get_project),
    ('PUT', rf'^/projects/(?P<project_id>{ID})$', project.update_project),
    ('DELETE', rf'^/projects/(?P<project_id>{ID})$', project.delete_project),
    ('PUT', rf'^/projects/(?P<project_id>{ID})/status$', project.update_project_status),
    ('POST', rf'^/projects/(?P<project_id>{ID})/reward$', project.add_project_reward),
    ('PUT', rf'^/projects/(?P<project_id>{ID})/reward$', project.update_project_reward),
    ('POST', rf'^/projects/(?P<project_id>{ID})/comments$', project.create_project_comment),
    ('DELETE', rf'^/projects/(?P<project_id>{ID})/comments/(?P<comment_id>{ID})$', project.delete_project_comment),
    ('POST', rf'^/projects/(?P<project_id>{ID})/resources$', project.create_supplemental_resource),
    ('POST', rf'^/projects/(?P<project_id>{ID})/resources/file$', project.create_supplemental_resource_file),
    ('DELETE', rf'^/projects/(?P<project_id>{ID})/resources/(?P<asset_id>{ID})$', project.delete_supplemental_resource),

    ('POST', rf'^/projects/(?P<project_id>{ID})/entries$', entry.project_signup),
    ('GET', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})$', entry.get_entry_by_student_id),
    ('PUT', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})$', entry.update_entry),
    ('DELETE', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})$', entry.project_signoff),
    ('POST', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})/assets$', entry.create_entry_asset),
    ('POST', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})/assets/file$', entry.create_entry_asset_file),
    ('DELETE', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})/assets/(?P<asset_id>{ID})$', entry.delete_entry_asset),
    ('POST', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})/comments$', entry.create_entry_comment),
    ('DELETE', rf'^/projects/(?P<project_id>{ID})/entries/(?P<user_id>{ID})/comments/(?P<comment_id>{ID})$', entry.delete_entry_comment),

    ('GET', r'^/organizations$', organization.list_organizations),
    ('POST', r'^/organizations$', organization.create_organization),
    ('GET', rf'^/organizations/(?P<organization_id>{ID})$', organization.get_organization),
    ('PUT', rf'^/organizations/(?P<organization_id>{ID})$', organization.update_organization),
    ('PUT', rf'^/organizations/(?P<organization_id>{ID})/liaisons/(?P<user_id>{ID})$', organization.add_liaison_to_organization),
    ('DELETE', rf'^/organizations/(?P<organization_id>{ID})/liaisons/(?P<user_id>{ID})$', organization.remove_liaison_from_organization),

    ('GET', rf'^/users/(?P<user_id>{ID})$', user.get_user),
    ('PUT', rf'^/users/(?P<user_id>{ID})$', user.create_or_update_user),
    ('DELETE', rf'^/users/(?P<user_id>{ID})$', user.delete_user),
    ('PUT', rf'^/users/(?P<user_id>{ID})/portfolio-entries$', user.update_portfolio_entries),
]

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def match_route(method, path):
    for route_method, pattern, route_handler in ROUTES:
        if method == route_method and (match := re.match(pattern, path)):
            return route_handler, match.groupdict()
    return None, {}


def build_event(environ, path_parameters):
    """WSGI environ을 핸들러가 받는 이벤트 딕셔너리로 바꿉니다."""
    content_length = int(environ.get("CONTENT_LENGTH") or 0)
    body = environ["wsgi.input"].read(content_length).decode("utf-8") if content_length > 0 else None

    authorizer = {}
    if environ.get("HTTP_X_PRINCIPAL_ID"):
        authorizer["principalId"] = environ["HTTP_X_PRINCIPAL_ID"]
    if environ.get("HTTP_X_SCOPE"):
        authorizer["scope"] = environ["HTTP_X_SCOPE"]

    return {
        "httpMethod": environ.get("REQUEST_METHOD", ""),
        "path": environ.get("PATH_INFO", ""),
        "pathParameters": path_parameters or None,
        "queryStringParameters": dict(parse_qsl(environ.get("QUERY_STRING", ""))) or None,
        "body": body,
        "requestContext": {"authorizer": authorizer},
    }


def status_line(status_code):
    return f"{status_code} {HTTPStatus(status_code).phrase}"

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (라우팅)
# --------------------------------------------------------------------------

def application(environ, start_response):
    path = environ.get("PATH_INFO", "")
    method = environ.get("REQUEST_METHOD", "")

    handler, path_parameters = match_route(method, path)
    if handler:
        try:
            response = handler(build_event(environ, path_parameters), None)
        except ValueError as e:
            # 잘못된 JSON 본문은 핸들러 밖으로 전달되므로 여기서 400으로 바꿉니다.
            logger.info("Malformed request to %s %s: %s", method, path, e)
            response = {
                "statusCode": 400,
                "headers": {"Content-Type": "application/json"},
                "body": '{"message": "Malformed request body"}',
            }
    else:
        response = {
            "statusCode": 404,
            "headers": {"Content-Type": "application/json"},
            "body": '{"message": "Not Found"}',
        }

    start_response(status_line(response["statusCode"]), list(response["headers"].items()))
    return [response["body"].encode("utf-8")] if response["body"] else []

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

if __name__ == "__main__":
    configure_logging()
    initialize_db()
    try:
        with make_server("", 8000, application) as httpd:
            logger.info("Serving Scholance API on port 8000...")
            httpd.serve_forever()
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
