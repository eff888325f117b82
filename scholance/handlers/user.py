# scholance/handlers/user.py
from scholance.handlers._helper import (
    lambda_handler, open_services, parse_body, path_param,
    require_auth_id, require_self, create_success_response,
)


@lambda_handler
def get_user(event, context):
    user_id = path_param(event, 'user_id')
    with open_services() as services:
        user = services['user'].get(user_id)
    return create_success_response(200, user)


@lambda_handler
def create_or_update_user(event, context):
    auth_id = require_auth_id(event)
    user_id = path_param(event, 'user_id')
    require_self(auth_id, user_id, 'Trying to update non-authenticated user')
    request = parse_body(event)
    with open_services() as services:
        user = services['user'].create_or_update(user_id, request)
    return create_success_response(200, user)


@lambda_handler
def delete_user(event, context):
    auth_id = require_auth_id(event)
    user_id = path_param(event, 'user_id')
    require_self(auth_id, user_id, 'Trying to delete non-authenticated user')
    with open_services() as services:
        services['user'].delete(user_id)
    return create_success_response(204)


@lambda_handler
def update_portfolio_entries(event, context):
    auth_id = require_auth_id(event)
    user_id = path_param(event, 'user_id')
    require_self(auth_id, user_id, 'Trying to update non-authenticated user')
    request = parse_body(event)
    with open_services() as services:
        entries = services['user'].update_portfolio_entries(user_id, request.get('portfolioEntries'))
    return create_success_response(200, entries)
