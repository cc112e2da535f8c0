"""User Domain Model"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..config import PASSWORD_MIN_LENGTH
from .enums import Role
from .fields import NonEmptyStr, NormalizedEmail


class User(BaseModel):
    """User 数据模型（含密码哈希，不直接对外返回）"""

    user_id: str = Field(description="唯一标识，ULID 格式")
    name: NonEmptyStr = Field(description="姓名")
    email: NormalizedEmail = Field(description="邮箱，小写存储，全局唯一")
    password_hash: str = Field(description="加盐密码哈希")
    role: Role = Field(default=Role.EMPLOYEE, description="角色")
    created_at: datetime = Field(description="创建时间")

    def to_public(self) -> "UserPublic":
        return UserPublic(
            user_id=self.user_id,
            name=self.name,
            email=self.email,
            role=self.role,
            created_at=self.created_at,
        )

    def to_ref(self) -> "UserRef":
        return UserRef(user_id=self.user_id, name=self.name, email=self.email)


class UserPublic(BaseModel):
    """对外返回的用户信息"""

    user_id: str
    name: str
    email: str
    role: Role
    created_at: datetime


class UserRef(BaseModel):
    """任务中引用的用户摘要"""

    user_id: str
    name: str
    email: str


class UserRegister(BaseModel):
    """注册请求体"""

    model_config = ConfigDict(extra="forbid")

    name: NonEmptyStr
    email: NormalizedEmail
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    role: Role = Role.EMPLOYEE


class UserChanges(BaseModel):
    """用户部分更新（仅 superadmin 可调用）"""

    model_config = ConfigDict(extra="forbid")

    name: NonEmptyStr | None = None
    email: NormalizedEmail | None = None
    role: Role | None = None

    def provided(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
