"""
Auth API endpoints: registration, login, logout and the current user.

Router handles HTTP concerns (payload, status codes, envelope); AuthService
owns credentials and tokens.
"""

from fastapi import APIRouter, Depends, Request, status

from catalog_api.api.dependencies import AuthContext, get_auth_context, get_auth_service, read_payload
from catalog_api.api.responses import success_response
from catalog_api.api.rules import LOGIN_RULES, REGISTER_RULES
from catalog_api.core.logging_config import get_logger
from catalog_api.core.validation import validate
from catalog_api.services import AuthService


logger = get_logger(__name__)
router = APIRouter(tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: Request, service: AuthService = Depends(get_auth_service)):
    """Register a user.

    Body: name, email, password, password_confirmation.

    Returns:
        201 with the created user (never the password hash)

    Raises:
        ServiceError: 422 on validation failure, including a taken email
    """
    payload = await read_payload(request)
    validated = await validate(payload, REGISTER_RULES, unique=service.email_taken)

    user = await service.register(validated)

    return success_response("User registered successfully", user, status.HTTP_201_CREATED)


@router.post("/login")
async def login(request: Request, service: AuthService = Depends(get_auth_service)):
    """Exchange credentials for a bearer token.

    Returns:
        200 with ``{user, token}``

    Raises:
        ServiceError: 422 on validation failure, 401 on bad credentials
    """
    payload = await read_payload(request)
    validated = await validate(payload, LOGIN_RULES)

    result = await service.login(validated["email"], validated["password"])

    return success_response("Login successful", result)


@router.post("/logout")
async def logout(
    auth: AuthContext = Depends(get_auth_context),
    service: AuthService = Depends(get_auth_service),
):
    """Revoke the token that authenticated this request."""
    await service.logout(auth.token_id)
    return success_response("Logged out successfully")


@router.get("/user")
async def current_user(auth: AuthContext = Depends(get_auth_context)):
    return success_response("User retrieved successfully", auth.user)
