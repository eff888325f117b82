# tests/handlers/test_helper.py
import json
import pytest
from sqlalchemy.exc import OperationalError

from scholance import auth
from scholance.handlers import _helper
from scholance.services.exceptions import ProjectNotFoundError, WorkflowError, InvalidIdError


class TestAuth:
    @pytest.mark.parametrize("principal_id, expected", [
        ("auth0|abc123", "abc123"),
        ("abc123", None),
        ("a|b|c", None),
        ("auth0|", None),
        (None, None),
    ])
    def test_get_auth_id(self, make_event, principal_id, expected):
        assert auth.get_auth_id(make_event(principal_id=principal_id)) == expected

    def test_get_scopes(self, make_event):
        event = make_event(scope="manage:project manage:organization")

        assert auth.get_scopes(event) == ["manage:project", "manage:organization"]
        assert auth.get_scopes({}) == []

    def test_is_owner(self):
        assert auth.is_owner("u1", "u1")
        assert not auth.is_owner("u1", "u2")
        assert not auth.is_owner(None, None)


class TestResponses:
    def test_success_response_shape(self):
        response = _helper.create_success_response(200, {"id": "p1"})

        assert response["statusCode"] == 200
        assert response["headers"] == {"Access-Control-Allow-Origin": "*", "Content-Type": "application/json"}
        assert json.loads(response["body"]) == {"id": "p1"}

    def test_no_content_has_empty_body(self):
        assert _helper.create_success_response(204)["body"] == ""

    def test_service_error_maps_to_status(self):
        response = _helper.handle_exception(ProjectNotFoundError("Project not found"))

        assert response["statusCode"] == 404
        assert json.loads(response["body"]) == {"message": "Project not found"}

    def test_workflow_error_is_500(self):
        assert _helper.handle_exception(WorkflowError("partial"))["statusCode"] == 500

    def test_database_error_is_503(self):
        response = _helper.handle_exception(OperationalError("SELECT 1", {}, Exception("down")))

        assert response["statusCode"] == 503

    def test_unexpected_error_is_500(self):
        response = _helper.handle_exception(KeyError("oops"))

        assert response["statusCode"] == 500
        assert json.loads(response["body"]) == {"message": "Internal server error"}

    def test_value_error_propagates(self):
        with pytest.raises(ValueError):
            _helper.handle_exception(ValueError("bad json"))


class TestRequestParsing:
    def test_parse_body_rejects_non_object(self, make_event):
        with pytest.raises(ValueError):
            _helper.parse_body(make_event(body="[1, 2]"))

    def test_parse_body_rejects_malformed_json(self, make_event):
        with pytest.raises(ValueError):
            _helper.parse_body(make_event(body="{not json"))

    def test_parse_empty_body(self, make_event):
        assert _helper.parse_body(make_event()) == {}

    def test_path_param_validates_id(self, make_event):
        with pytest.raises(InvalidIdError):
            _helper.path_param(make_event(path={"project_id": "../etc"}), "project_id")
        assert _helper.path_param(make_event(path={"project_id": "abc_1-2"}), "project_id") == "abc_1-2"

    def test_path_param_rejects_trailing_newline(self, make_event):
        with pytest.raises(InvalidIdError):
            _helper.path_param(make_event(path={"project_id": "p1\n"}), "project_id")
