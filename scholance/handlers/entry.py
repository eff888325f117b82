# scholance/handlers/entry.py
from scholance import auth
from scholance.handlers._helper import (
    lambda_handler, open_services, parse_body, path_param,
    require_auth_id, require_scope, require_self, create_success_response,
)


def _require_student_self(event, message):
    """인증, manage:entry 스코프, 경로의 user_id가 본인인지 차례로 확인합니다."""
    auth_id = require_auth_id(event)
    require_scope(event, auth.MANAGE_ENTRY, message, auth_id)
    user_id = path_param(event, 'user_id')
    require_self(auth_id, user_id, 'Student ID does not match authenticated user')
    return user_id


@lambda_handler
def get_entry_by_student_id(event, context):
    require_auth_id(event)
    project_id = path_param(event, 'project_id')
    user_id = path_param(event, 'user_id')
    with open_services() as services:
        entry = services['entry'].get_by_student_id(project_id, user_id)
    return create_success_response(200, entry)


@lambda_handler
def project_signup(event, context):
    auth_id = require_auth_id(event)
    require_scope(event, auth.MANAGE_ENTRY, 'You must be a student user to sign up for a project', auth_id)
    project_id = path_param(event, 'project_id')
    with open_services() as services:
        entry = services['entry'].project_signup(project_id, auth_id)
    return create_success_response(201, entry)


@lambda_handler
def update_entry(event, context):
    user_id = _require_student_self(event, 'You must be a student user to update an entry')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        entry = services['entry'].update(project_id, user_id, request)
    return create_success_response(200, entry)


@lambda_handler
def project_signoff(event, context):
    user_id = _require_student_self(event, 'You must be a student user to sign off of this project')
    project_id = path_param(event, 'project_id')
    with open_services() as services:
        services['entry'].project_signoff(project_id, user_id)
    return create_success_response(204)


# --- Assets ---

@lambda_handler
def create_entry_asset(event, context):
    user_id = _require_student_self(event, 'You must be a student user to add an asset to an entry')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        asset = services['entry'].create_asset(project_id, user_id, request)
    return create_success_response(201, asset)


@lambda_handler
def create_entry_asset_file(event, context):
    user_id = _require_student_self(event, 'You must be a student user to add an asset to an entry')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        asset = services['entry'].create_asset_from_file(project_id, user_id, request)
    return create_success_response(201, asset)


@lambda_handler
def delete_entry_asset(event, context):
    user_id = _require_student_self(event, 'You must be a student user to remove an asset from an entry')
    project_id = path_param(event, 'project_id')
    asset_id = path_param(event, 'asset_id')
    with open_services() as services:
        services['entry'].delete_asset(project_id, user_id, asset_id)
    return create_success_response(204)


# --- Comments ---

@lambda_handler
def create_entry_comment(event, context):
    auth_id = require_auth_id(event)
    project_id = path_param(event, 'project_id')
    user_id = path_param(event, 'user_id')
    request = parse_body(event)
    with open_services() as services:
        comment = services['entry'].create_entry_comment(project_id, user_id, auth_id, request)
    return create_success_response(201, comment)


@lambda_handler
def delete_entry_comment(event, context):
    auth_id = require_auth_id(event)
    project_id = path_param(event, 'project_id')
    user_id = path_param(event, 'user_id')
    comment_id = path_param(event, 'comment_id')
    with open_services() as services:
        services['entry'].delete_entry_comment(project_id, user_id, auth_id, comment_id)
    return create_success_response(204)
