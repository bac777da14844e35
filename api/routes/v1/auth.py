"""
api/routes/v1/auth.py -- Registration, login and token endpoints.

Routes:
  POST /api/v1/auth/register   -- create account, return token (public, rate-limited)
  POST /api/v1/auth/login      -- email/password login, return token (public, rate-limited)
  POST /api/v1/auth/refresh    -- re-issue a token for the caller (requires auth)
  GET  /api/v1/auth/me         -- identity carried by the caller's token (requires auth)

Security:
  [H2] login and register are rate-limited per client IP (Settings).
  [C1] Login goes through CredentialValidator.authenticate(), which equalizes
       timing between unknown email and wrong password. Do NOT inline
       find_by_email() + compare().
  [M5] Cache-Control: no-store on every response that carries a token.

register/login/refresh are plain `def` handlers: they hash or compare
passwords (bcrypt, CPU-bound), and FastAPI runs `def` handlers in its worker
thread pool so the event loop keeps serving other requests.

Auth errors are raised as auth.errors.AuthError; api/main.py maps them to
the JSON error envelope.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.limiter import limiter, login_limit, register_limit
from api.models import LoginRequest, MeResponse, RegisterRequest, TokenResponse
from auth.credentials import CredentialValidator
from auth.dependencies import get_current_principal
from auth.errors import Unauthenticated
from auth.models import Principal
from auth.registration import RegistrationFlow
from auth.tokens import TokenIssuer
from core.config import get_settings
from users.store import UserStore

router = APIRouter()


def _token_response(request: Request, response: Response, issued) -> TokenResponse:
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return TokenResponse.from_issued(issued, expires_in=request.app.state.signer.expire_seconds)


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=TokenResponse, status_code=201)
@limiter.limit(register_limit)  # [H2] must sit BELOW @router so the route registers the limited wrapper
def register(request: Request, response: Response, body: RegisterRequest) -> TokenResponse:
    """Create an account and log it in.

    Permissions come from the role's default set. Returns 409 when the email
    is already registered.
    """
    if not get_settings().self_registration_enabled:
        raise HTTPException(
            status_code=403,
            detail={"code": "registration_disabled", "message": "Self-registration is disabled."},
        )
    registration: RegistrationFlow = request.app.state.registration
    issued = registration.register(body.email, body.username, body.password, role=body.role)
    return _token_response(request, response, issued)


@router.post("/auth/login", response_model=TokenResponse)
@limiter.limit(login_limit)  # [H2] brute-force mitigation
def login(request: Request, response: Response, body: LoginRequest) -> TokenResponse:
    """Authenticate with email and password.

    Unknown email and wrong password return the same 401 ("invalid_credentials").
    """
    credentials: CredentialValidator = request.app.state.credentials
    user = credentials.authenticate(body.email, body.password)
    issuer: TokenIssuer = request.app.state.issuer
    return _token_response(request, response, issuer.issue(user))


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh(
    request: Request,
    response: Response,
    principal: Principal = Depends(get_current_principal),
) -> TokenResponse:
    """Issue a fresh token from the caller's stored record.

    Role and permissions in the new token reflect the store, not the old
    token. A token whose subject no longer exists is rejected with 401.
    """
    user_store: UserStore = request.app.state.user_store
    user = user_store.find_by_id(principal.id)
    if user is None:
        raise Unauthenticated()
    issuer: TokenIssuer = request.app.state.issuer
    return _token_response(request, response, issuer.issue(user.to_public()))


@router.get("/auth/me", response_model=MeResponse)
def me(principal: Principal = Depends(get_current_principal)) -> MeResponse:
    """Return the identity carried by the caller's token."""
    return MeResponse.from_principal(principal)
