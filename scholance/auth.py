# scholance/auth.py
"""
요청 이벤트에서 인증 정보(principal id, scope)를 꺼내는 헬퍼.

상위 authorizer가 토큰 검증을 이미 끝낸 뒤 requestContext.authorizer에
'<provider>|<userId>' 형태의 principalId와 공백으로 구분된 scope 문자열을 넣어 줍니다.
여기서는 그 값을 해석만 하며, 부수 효과는 없습니다.
"""
from typing import Any, Dict, List, Optional

# OAuth scope(권한) 토큰
MANAGE_ENTRY = 'manage:entry'
MANAGE_ORGANIZATION = 'manage:organization'
MANAGE_PROJECT = 'manage:project'


def _authorizer(event: Dict[str, Any]) -> Dict[str, Any]:
    return ((event or {}).get('requestContext') or {}).get('authorizer') or {}


def get_auth_id(event: Dict[str, Any]) -> Optional[str]:
    """principal id가 정확히 두 부분('<provider>|<userId>')으로 나뉘면 userId를, 아니면 None을 반환합니다."""
    principal_id = _authorizer(event).get('principalId')
    auth = principal_id.split('|') if principal_id else []
    return auth[1] if len(auth) == 2 and auth[1] else None


def get_scopes(event: Dict[str, Any]) -> List[str]:
    scope = _authorizer(event).get('scope')
    return scope.split() if scope else []


def scopes_contain_scope(scopes: List[str], scope: str) -> bool:
    return scope in scopes


def is_owner(auth_id: Optional[str], owner_id: Optional[str]) -> bool:
    """인증된 사용자가 리소스 소유자인지 확인합니다. 둘 중 하나라도 비어 있으면 거부합니다."""
    return bool(auth_id) and bool(owner_id) and str(auth_id) == str(owner_id)
