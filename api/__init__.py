"""HTTP surface consumed by the console's view host."""

from api.base import APIResponse, ErrorCodes, error_response, success_response
from api.app import create_app
