from pydantic import EmailStr, Field
from projecthub.schemas.common import CamelModel

# bcrypt only hashes the first 72 bytes
class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)

class LoginRequest(CamelModel):
    email: EmailStr
    password: str

class LoginResponse(CamelModel):
    token: str
    type: str = "Bearer"
    user_id: int
    email: str

class UserSearchResponse(CamelModel):
    id: int
    email: str
