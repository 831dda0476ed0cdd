from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class _CamelModel(BaseModel):
    # The browser client sends camelCase; Python code reads snake_case
    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(_CamelModel):
    username: str = ""
    password: str = ""


class ChangePasswordRequest(_CamelModel):
    current_password: str = Field("", alias="currentPassword")
    new_password: str = Field("", alias="newPassword")


class CreateUserRequest(_CamelModel):
    username: str = ""
    password: str = ""
    display_name: Optional[str] = Field(None, alias="displayName")
    email: Optional[str] = None
    role: Optional[str] = None


class ZohoConnectRequest(_CamelModel):
    client_id: str = Field("", alias="clientId")
    client_secret: str = Field("", alias="clientSecret")
    organization: str = ""
