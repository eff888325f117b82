# tests/services/test_workflow.py
import pytest
from unittest.mock import MagicMock

from scholance.services.workflow import Workflow
from scholance.services.exceptions import WorkflowError, ConflictError


def failing(exc):
    def action():
        raise exc
    return action


class TestRun:
    def test_all_steps_complete(self):
        calls = []
        result = (Workflow("demo")
                  .step("a", lambda: calls.append("a"))
                  .step("b", lambda: calls.append("b"))
                  .run())

        assert calls == ["a", "b"]
        assert result.completed == ["a", "b"]
        assert result.ok

    def test_required_failure_compensates_in_reverse(self):
        """필수 단계가 실패하면 완료된 단계의 보상 함수가 역순으로 실행되는지 테스트합니다."""
        # === Arrange ===
        undo = []
        workflow = (Workflow("demo")
                    .step("a", lambda: None, compensate=lambda: undo.append("a"))
                    .step("b", lambda: None, compensate=lambda: undo.append("b"))
                    .step("c", failing(RuntimeError("boom"))))

        # === Act & Assert ===
        with pytest.raises(WorkflowError) as exc_info:
            workflow.run()

        assert undo == ["b", "a"]
        assert exc_info.value.step == "c"
        assert exc_info.value.completed == ["a", "b"]
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_service_error_is_propagated_as_is(self):
        """비즈니스 오류는 WorkflowError로 감싸지 않고 그대로 전달되는지 테스트합니다."""
        workflow = (Workflow("demo")
                    .step("a", lambda: None)
                    .step("b", failing(ConflictError("taken"))))

        with pytest.raises(ConflictError):
            workflow.run()

    def test_first_step_failure_is_propagated_as_is(self):
        """아무것도 반영되지 않은 상태의 실패는 원래 예외를 그대로 전달하는지 테스트합니다."""
        with pytest.raises(RuntimeError):
            Workflow("demo").step("a", failing(RuntimeError("db down"))).run()

    def test_best_effort_failure_is_recorded(self):
        second = MagicMock()
        result = (Workflow("demo")
                  .step("a", failing(RuntimeError("s3 down")), required=False)
                  .step("b", second)
                  .run())

        second.assert_called_once()
        assert result.failed == ["a"]
        assert result.completed == ["b"]
        assert not result.ok

    def test_compensation_failure_does_not_hide_original_error(self):
        workflow = (Workflow("demo")
                    .step("a", lambda: None, compensate=failing(RuntimeError("undo failed")))
                    .step("b", failing(ValueError("boom"))))

        with pytest.raises(WorkflowError) as exc_info:
            workflow.run()
        assert isinstance(exc_info.value.cause, ValueError)


class TestFanOut:
    def test_runs_every_step_and_raises_one_error(self):
        """하나가 실패해도 모든 단계를 실행하고, 첫 실패를 가리키는 하나의 오류를 던지는지 테스트합니다."""
        # === Arrange ===
        ran = []
        workflow = Workflow("fan")
        workflow.step("s1", lambda: ran.append("s1"))
        workflow.step("s2", failing(RuntimeError("first")))
        workflow.step("s3", failing(RuntimeError("second")))
        workflow.step("s4", lambda: ran.append("s4"))

        # === Act & Assert ===
        with pytest.raises(WorkflowError) as exc_info:
            workflow.fan_out()

        assert ran == ["s1", "s4"]
        assert exc_info.value.step == "s2"
        assert exc_info.value.completed == ["s1", "s4"]
        assert "2 of 4" in exc_info.value.message

    def test_empty_fan_out(self):
        assert Workflow("fan").fan_out().ok
