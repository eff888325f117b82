"""
여러 번의 독립적인 쓰기로 이루어진 작업을 순서 있는 단계(step) 목록으로 실행합니다.

DB 트랜잭션 하나로 묶을 수 없는 작업(프로젝트 저장 + 사용자 목록 갱신 + S3 폴더 생성 등)에서
어느 단계가 성공했고 어느 단계가 실패했는지를 호출자에게 명시적으로 알려주는 것이 목적입니다.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from scholance.services.exceptions import ServiceError, WorkflowError

logger = logging.getLogger(__name__)


@dataclass
class Step:
    name: str
    action: Callable[[], Any]
    compensate: Optional[Callable[[], Any]] = None
    required: bool = True


@dataclass
class WorkflowResult:
    completed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Workflow:
    def __init__(self, name: str):
        self.name = name
        self.steps: List[Step] = []

    def step(self, name: str, action: Callable[[], Any], compensate: Callable[[], Any] = None, required: bool = True) -> "Workflow":
        self.steps.append(Step(name, action, compensate, required))
        return self

    def run(self) -> WorkflowResult:
        """
        단계를 순서대로 하나씩 실행합니다.

        필수(required) 단계가 실패하면 이미 완료된 단계들의 보상(compensate) 함수를
        역순으로 실행한 뒤 예외를 던집니다. 선택(best-effort) 단계의 실패는 로그로 남기고
        결과의 failed 목록에 기록한 뒤 다음 단계로 진행합니다.

        Raises:
            ServiceError: 필수 단계가 비즈니스 오류(ServiceError)로 실패했을 때. 원래 예외를 그대로 전달합니다.
                첫 단계가 실패해 아무것도 반영되지 않은 경우에도 원래 예외를 그대로 전달합니다.
            WorkflowError: 일부 단계가 반영된 뒤 필수 단계가 그 밖의 오류로 실패했을 때.
        """
        result = WorkflowResult()
        done: List[Step] = []
        for step in self.steps:
            try:
                step.action()
            except Exception as e:
                if not step.required:
                    logger.warning("%s: best-effort step '%s' failed: %s", self.name, step.name, e)
                    result.failed.append(step.name)
                    continue
                logger.error("%s: step '%s' failed: %s. Compensating %d completed step(s)...",
                             self.name, step.name, e, len(done))
                self._compensate(done)
                if isinstance(e, ServiceError) or not done:
                    raise
                raise WorkflowError(f"{self.name} failed at step '{step.name}'",
                                    step=step.name, completed=result.completed, cause=e) from e
            done.append(step)
            result.completed.append(step.name)
        return result

    def fan_out(self) -> WorkflowResult:
        """
        모든 단계를 실패 여부와 관계없이 끝까지 실행합니다. (보상 없음)

        하나라도 실패하면 첫 번째 실패를 가리키는 하나의 WorkflowError로 묶어 던집니다.
        이미 반영된 단계는 되돌리지 않으므로 호출자는 "일부만 반영되었을 수 있음"으로 취급해야 합니다.
        """
        result = WorkflowResult()
        first_error = None
        for step in self.steps:
            try:
                step.action()
                result.completed.append(step.name)
            except Exception as e:
                logger.error("%s: step '%s' failed: %s", self.name, step.name, e)
                result.failed.append(step.name)
                if first_error is None:
                    first_error = (step.name, e)
        if first_error:
            step_name, cause = first_error
            raise WorkflowError(
                f"{self.name} partially failed: {len(result.failed)} of {len(self.steps)} step(s) failed, "
                f"first failure at '{step_name}': {cause}",
                step=step_name, completed=result.completed, cause=cause,
            ) from cause
        return result

    def _compensate(self, done: List[Step]):
        for step in reversed(done):
            if not step.compensate:
                continue
            try:
                step.compensate()
            except Exception as e:
                logger.error("%s: compensation for step '%s' failed: %s", self.name, step.name, e)
