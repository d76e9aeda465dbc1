from fastapi import Depends, HTTPException, status, Request
from .models.user_model import User, UserRole
from .security import current_active_user
from .services.timer_service import utc_now


def current_user_has_role(required_role: UserRole):
    async def current_user_contains_role(user: User = Depends(current_active_user)):
        if user.role != required_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation not permitted",
            )
        return user
    return current_user_contains_role


current_faculty = current_user_has_role(UserRole.FACULTY)
current_student = current_user_has_role(UserRole.STUDENT)


async def users_router_permission(request: Request, user: User = Depends(current_active_user)):
    method = request.method.upper()
    # Faculty-only methods
    if method in ("POST", "PUT", "PATCH", "DELETE"):
        if user.role != UserRole.FACULTY:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operation not permitted")
    return True


def get_clock():
    # overridden in tests to pin "now"
    return utc_now
