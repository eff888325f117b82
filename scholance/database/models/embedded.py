"""
프로젝트/사용자 문서 안에 포함되는(embedded) 하위 문서 유틸리티.

Entry, Asset, Message, PortfolioEntry는 별도 테이블이 아니라 부모 행의 JSON 컬럼에
순서가 있는 리스트로 저장됩니다. 각 원소는 생성 시 부여되는 고유 `id`를 가지며,
조회/삭제는 리스트를 앞에서부터 선형 탐색합니다.

여기의 함수들은 입력 리스트를 변경하지 않고 항상 새 리스트를 반환합니다.
(SQLAlchemy가 JSON 컬럼의 변경을 감지하려면 새 객체를 다시 할당해야 하기 때문입니다.)
"""
import copy
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

SubDocument = Dict[str, Any]


def new_id() -> str:
    return uuid.uuid4().hex


def new_asset(name: str, media_type: str, uri: Optional[str] = None, text: Optional[str] = None) -> SubDocument:
    asset = {"id": new_id(), "name": name, "mediaType": media_type}
    if uri:
        asset["uri"] = uri
    if text:
        asset["text"] = text
    return asset


def new_message(author: str, text: str) -> SubDocument:
    return {"id": new_id(), "author": author, "text": text}


def new_entry(student_id: str, submission_status: str = "active") -> SubDocument:
    return {
        "id": new_id(),
        "student": student_id,
        "commentary": None,
        "submissionStatus": submission_status,
        "assets": [],
        "comments": [],
        "selected": False,
    }


def find_index(items: Optional[List[SubDocument]], predicate: Callable[[SubDocument], bool]) -> int:
    """조건을 만족하는 첫 원소의 인덱스를 반환합니다. 없으면 -1."""
    for index, item in enumerate(items or []):
        if predicate(item):
            return index
    return -1


def find(items: Optional[List[SubDocument]], predicate: Callable[[SubDocument], bool]) -> Optional[SubDocument]:
    index = find_index(items, predicate)
    return items[index] if index != -1 else None


def find_by_id(items: Optional[List[SubDocument]], item_id: str) -> Optional[SubDocument]:
    return find(items, lambda item: item.get("id") == item_id)


def append(items: Optional[List[SubDocument]], item: SubDocument) -> List[SubDocument]:
    return copy.deepcopy(list(items or [])) + [item]


def prepend(items: Optional[List[SubDocument]], item: SubDocument) -> List[SubDocument]:
    return [item] + copy.deepcopy(list(items or []))


def remove_by_id(items: Optional[List[SubDocument]], item_id: str) -> Tuple[List[SubDocument], Optional[SubDocument]]:
    """
    id가 일치하는 원소 하나를 제거한 새 리스트와, 제거된 원소를 반환합니다.

    일치하는 원소가 없으면 원본과 같은 내용의 리스트와 None을 반환합니다. (no-op)
    """
    result = copy.deepcopy(list(items or []))
    index = find_index(result, lambda item: item.get("id") == item_id)
    if index == -1:
        return result, None
    removed = result.pop(index)
    return result, removed
