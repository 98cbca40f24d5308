"""Request dependencies shared by routers."""

from fastapi import Request, HTTPException, status

from shortener.common.headers import get_real_ip, parse_subnet, ip_in_subnet


def get_user_id(request: Request) -> str:
    """User id resolved by AuthMiddleware (may be freshly issued)."""
    return request.state.user_id


def require_user_id(request: Request) -> str:
    """User id from a valid cookie sent with the request."""
    if not getattr(request.state, "authenticated", False):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return request.state.user_id


def require_trusted_subnet(request: Request) -> None:
    """Allow only clients whose X-Real-IP is inside the configured trusted subnet."""
    network = parse_subnet(request.app.state.config.trusted_subnet)
    if network is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    real_ip = get_real_ip(dict(request.headers))
    if real_ip is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="X-Real-IP header is required",
        )

    if not ip_in_subnet(real_ip, network):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="IP not in trusted subnet",
        )
