# scholance/services/exceptions.py


class ServiceError(Exception):
    """서비스 계층의 모든 비즈니스 오류. 응답 상태 코드와 메시지를 함께 가집니다."""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


# --- Auth Exceptions ---
class AuthenticationError(ServiceError):
    """principal id가 없거나 형식이 잘못되었을 때"""
    status_code = 401

class AuthorizationError(ServiceError):
    """스코프가 부족하거나 리소스 소유자가 아닐 때"""
    status_code = 403


# --- Validation Exceptions ---
class ValidationError(ServiceError):
    """필수 필드 누락, 잘못된 값 등 요청 데이터가 유효하지 않을 때"""
    status_code = 400

class InvalidIdError(ValidationError):
    """경로의 식별자 형식이 잘못되었을 때"""
    pass

class InvalidInputError(ValidationError):
    """파일 업로드 요청에 이름이나 데이터가 없거나 디코딩할 수 없을 때"""
    pass

class UnrecognizedFileTypeError(ValidationError):
    """파일 시그니처로 형식을 판별할 수 없을 때"""
    pass


# --- Not Found Exceptions ---
class NotFoundError(ServiceError):
    status_code = 404

class ProjectNotFoundError(NotFoundError):
    """프로젝트를 찾을 수 없을 때"""
    pass

class EntryNotFoundError(NotFoundError):
    """프로젝트에서 학생의 제출물을 찾을 수 없을 때"""
    pass

class UserNotFoundError(NotFoundError):
    """사용자를 찾을 수 없을 때"""
    pass

class OrganizationNotFoundError(NotFoundError):
    """조직을 찾을 수 없을 때"""
    pass


# --- Conflict Exceptions ---
class ConflictError(ServiceError):
    status_code = 409

class AlreadySignedUpError(ConflictError):
    """이미 프로젝트에 참여 신청한 학생이 다시 신청할 때"""
    pass

class LiaisonConflictError(ConflictError):
    """이미 liaison인 사용자를 추가하거나, liaison이 아닌 사용자를 제거하려 할 때"""
    pass


# --- Infrastructure Exceptions ---
class StorageError(ServiceError):
    """오브젝트 스토리지(S3) 작업이 실패했을 때"""
    status_code = 503

class WorkflowError(ServiceError):
    """
    여러 단계로 이루어진 쓰기 작업이 중간에 실패했을 때.
    어느 단계까지 반영되었는지(completed)와 실패한 단계(step)를 함께 전달합니다.
    """
    status_code = 500

    def __init__(self, message: str, step: str = None, completed=None, cause: Exception = None):
        super().__init__(message)
        self.step = step
        self.completed = list(completed or [])
        self.cause = cause
