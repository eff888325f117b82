# scholance/handlers/project.py
from scholance import auth
from scholance.handlers._helper import (
    lambda_handler, open_services, parse_body, path_param, query_params,
    require_auth_id, require_scope, create_success_response,
)


def _require_business(event, message):
    auth_id = require_auth_id(event)
    require_scope(event, auth.MANAGE_PROJECT, message, auth_id)
    return auth_id


@lambda_handler
def list_projects(event, context):
    with open_services() as services:
        projects = services['project'].list(query_params(event))
    return create_success_response(200, projects)


@lambda_handler
def get_project(event, context):
    project_id = path_param(event, 'project_id')
    reveal_entries = auth.scopes_contain_scope(auth.get_scopes(event), auth.MANAGE_PROJECT)
    with open_services() as services:
        project = services['project'].get(project_id, reveal_entries)
    return create_success_response(200, project)


@lambda_handler
def create_project(event, context):
    auth_id = _require_business(event, 'You must be a business user to post a project')
    request = parse_body(event)
    with open_services() as services:
        project = services['project'].create(auth_id, request)
    return create_success_response(201, project)


@lambda_handler
def update_project(event, context):
    auth_id = _require_business(event, 'You must be a business user to update a project')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        project = services['project'].update(project_id, auth_id, request)
    return create_success_response(200, project)


@lambda_handler
def delete_project(event, context):
    auth_id = _require_business(event, 'You must be a business user to delete a project')
    project_id = path_param(event, 'project_id')
    with open_services() as services:
        services['project'].delete(project_id, auth_id)
    return create_success_response(204)


@lambda_handler
def update_project_status(event, context):
    auth_id = _require_business(event, 'You must be a business user to update a project status')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        project = services['project'].update_project_status(
            project_id, auth_id, request.get('status'), request.get('selectedStudentId'),
        )
    return create_success_response(200, project)


@lambda_handler
def add_project_reward(event, context):
    auth_id = _require_business(event, 'You must be a business user to add a reward')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        project = services['project'].add_project_reward(project_id, auth_id, request)
    return create_success_response(201, project)


@lambda_handler
def update_project_reward(event, context):
    auth_id = _require_business(event, 'You must be a business user to update a reward')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        project = services['project'].update_project_reward(project_id, auth_id, request)
    return create_success_response(200, project)


# --- Comments ---

@lambda_handler
def create_project_comment(event, context):
    auth_id = require_auth_id(event)
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        comment = services['project'].create_project_comment(project_id, auth_id, request)
    return create_success_response(201, comment)


@lambda_handler
def delete_project_comment(event, context):
    auth_id = require_auth_id(event)
    project_id = path_param(event, 'project_id')
    comment_id = path_param(event, 'comment_id')
    with open_services() as services:
        services['project'].delete_project_comment(project_id, auth_id, comment_id)
    return create_success_response(204)


# --- Supplemental Resources ---

@lambda_handler
def create_supplemental_resource(event, context):
    auth_id = _require_business(event, 'You must be a business user to add a resource to a project')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        asset = services['project'].create_supplemental_resource(project_id, auth_id, request)
    return create_success_response(201, asset)


@lambda_handler
def create_supplemental_resource_file(event, context):
    auth_id = _require_business(event, 'You must be a business user to add a resource to a project')
    project_id = path_param(event, 'project_id')
    request = parse_body(event)
    with open_services() as services:
        asset = services['project'].create_supplemental_resource_from_file(project_id, auth_id, request)
    return create_success_response(201, asset)


@lambda_handler
def delete_supplemental_resource(event, context):
    auth_id = _require_business(event, 'You must be a business user to remove a resource from a project')
    project_id = path_param(event, 'project_id')
    asset_id = path_param(event, 'asset_id')
    with open_services() as services:
        services['project'].delete_supplemental_resource(project_id, auth_id, asset_id)
    return create_success_response(204)
