"""Signed user cookie middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from shortener.auth import UserTokenSigner


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolve the user of every request from its signed cookie.

    Sets ``request.state.user_id`` and ``request.state.authenticated``. A
    request without a valid cookie gets a fresh user id, and the response
    carries a cookie for it.
    """

    def __init__(self, app, signer: UserTokenSigner, cookie_name: str = "user_token"):
        super().__init__(app)
        self.signer = signer
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next: Callable):
        user_id = self.signer.verify_token(request.cookies.get(self.cookie_name))
        authenticated = user_id is not None
        if not authenticated:
            user_id = self.signer.new_user_id()

        request.state.user_id = user_id
        request.state.authenticated = authenticated

        response = await call_next(request)

        if not authenticated:
            response.set_cookie(
                self.cookie_name,
                self.signer.make_token(user_id),
                path="/",
                httponly=True,
                samesite="strict",
            )
        return response
