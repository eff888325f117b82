# scholance/handlers/organization.py
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
def list_organizations(event, context):
    with open_services() as services:
        organizations = services['organization'].list(query_params(event))
    return create_success_response(200, organizations)


@lambda_handler
def get_organization(event, context):
    organization_id = path_param(event, 'organization_id')
    with open_services() as services:
        organization = services['organization'].get(organization_id)
    return create_success_response(200, organization)


@lambda_handler
def create_organization(event, context):
    auth_id = _require_business(event, 'Must be a Business user to add organization')
    request = parse_body(event)
    with open_services() as services:
        organization = services['organization'].create(request, auth_id)
    return create_success_response(201, organization)


@lambda_handler
def update_organization(event, context):
    auth_id = _require_business(event, 'You must be a business user to update an organization')
    organization_id = path_param(event, 'organization_id')
    request = parse_body(event)
    with open_services() as services:
        organization = services['organization'].update(organization_id, auth_id, request)
    return create_success_response(200, organization)


@lambda_handler
def add_liaison_to_organization(event, context):
    auth_id = _require_business(event, 'You must be a business user to add a liaison')
    organization_id = path_param(event, 'organization_id')
    user_id = path_param(event, 'user_id')
    with open_services() as services:
        organization = services['organization'].add_liaison_to_organization(organization_id, user_id, auth_id)
    return create_success_response(200, organization)


@lambda_handler
def remove_liaison_from_organization(event, context):
    auth_id = _require_business(event, 'You must be a business user to remove a liaison')
    organization_id = path_param(event, 'organization_id')
    user_id = path_param(event, 'user_id')
    with open_services() as services:
        organization = services['organization'].remove_liaison_from_organization(organization_id, user_id, auth_id)
    return create_success_response(200, organization)
