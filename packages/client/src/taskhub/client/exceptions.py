"""Client 异常体系"""


class ClientError(Exception):
    """Client 包基础异常"""


class ApiError(ClientError):
    """服务端返回非 2xx 响应

    code / message 取自统一错误结构 {"error": {"code", "message"}}。
    """

    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class ApiUnreachableError(ClientError):
    """服务不可达（连接失败、超时等）"""

    def __init__(self, base_url: str, original_error: Exception) -> None:
        super().__init__(f"TaskHub API 不可达: {base_url} -- {original_error}")
        self.base_url = base_url
        self.original_error = original_error


class NotLoggedInError(ClientError):
    """需要登录的调用在未登录状态下发起"""

    def __init__(self) -> None:
        super().__init__("未登录，请先调用 login()")
