"""Actor -- 已认证的操作者身份（user_id + role）"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import Role


class Actor(BaseModel):
    """操作者身份

    role 允许携带未知字符串（例如来自旧数据或外部 token），
    授权引擎对未知角色一律拒绝。
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="用户 ID")
    role: Role | str = Field(description="角色")
