from fastapi import Header, HTTPException


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Dependency: the acting user, as forwarded by the authenticating gateway."""
    if not x_user_id:
        raise HTTPException(401, "Not authenticated")
    return x_user_id
