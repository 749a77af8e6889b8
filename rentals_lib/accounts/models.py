from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal['tenant', 'owner']

ROLE_PERMISSIONS = {
    'owner': ['create:listing', 'edit:listing', 'delete:listing', 'view:booking'],
    'tenant': ['view:listing', 'create:booking'],
}


class SignUpPayload(BaseModel):
    email: str
    password: str
    role: Role = 'tenant'


class SignInPayload(BaseModel):
    email: str
    password: str


class AuthUser(BaseModel):
    id: str
    email: str
    role: str
    roles: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    name: Optional[str] = None


class AuthResult(BaseModel):
    success: bool
    user: Optional[AuthUser] = None
    error: Optional[str] = None
