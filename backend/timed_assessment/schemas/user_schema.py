from fastapi_users import schemas
from timed_assessment.models.user_model import UserRole
import uuid
from pydantic import BaseModel

class UserRead(schemas.BaseUser[uuid.UUID]):
    full_name: str | None = None
    role: UserRole

class UserCreate(schemas.BaseUserCreate):
    # no role here: self-registered users are always students, faculty are promoted via PATCH /users
    full_name: str

class UserUpdate(schemas.BaseUserUpdate):
    full_name : str | None = None
    role: UserRole | None = None

class LoginRequest(BaseModel):
    email: str
    password: str
