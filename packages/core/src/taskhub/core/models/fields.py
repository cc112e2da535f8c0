"""可复用的字段类型 -- 输入预处理（去空白、邮箱小写）"""

from typing import Annotated

from pydantic import AfterValidator, EmailStr, StringConstraints

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
NormalizedEmail = Annotated[EmailStr, AfterValidator(str.lower)]
