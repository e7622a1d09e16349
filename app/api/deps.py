"""Shared dependencies: JWT auth, role checks and student access."""
from datetime import datetime, timedelta
from typing import Annotated, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings
from app.models.student import Student
from app.models.user import User, UserRole
from app.services.payments import parse_student_id

security = HTTPBearer(auto_error=False)


def create_access_token(subject: str, role: str) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode = {"sub": subject, "role": role, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> User:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = credentials.credentials
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        user_id: str = payload.get("sub")
        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    try:
        user = await User.get(PydanticObjectId(user_id))
    except InvalidId:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user


def require_roles(*allowed: UserRole):
    allowed_values = [role.value for role in allowed]

    async def checker(user: Annotated[User, Depends(get_current_user)]):
        if user.role not in allowed_values:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return checker


async def get_student_or_404(student_id: str) -> Student:
    oid = parse_student_id(student_id)
    student = await Student.get(oid) if oid else None
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


async def get_viewable_student(student_id: str, user: Annotated[User, Depends(get_current_user)]) -> Student:
    """Student by path id; parents only reach their linked children."""
    student = await get_student_or_404(student_id)
    if not user.can_view_student(str(student.id)):
        raise HTTPException(status_code=403, detail="Not authorized for this student")
    return student


# Type aliases for route injection
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminOnly = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
StaffOnly = Annotated[User, Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER))]
ViewableStudent = Annotated[Student, Depends(get_viewable_student)]
