"""密码哈希与会话 token 生成

密码使用 PBKDF2-HMAC-SHA256 + 随机盐，存储格式：
    pbkdf2_sha256$<iterations>$<salt_hex>$<hash_hex>
"""

import hashlib
import hmac
import secrets

from .config import get_password_iterations

_ALGORITHM = "pbkdf2_sha256"
_SALT_BYTES = 16
_TOKEN_BYTES = 32


def hash_password(password: str, iterations: int | None = None) -> str:
    """生成加盐密码哈希"""
    rounds = iterations or get_password_iterations()
    salt = secrets.token_bytes(_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return f"{_ALGORITHM}${rounds}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """校验密码；格式无法识别时返回 False"""
    try:
        algorithm, rounds, salt_hex, digest_hex = stored.split("$")
        iterations = int(rounds)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(digest, expected)


def new_session_token() -> str:
    """生成不透明的 bearer token"""
    return secrets.token_urlsafe(_TOKEN_BYTES)


def token_digest(token: str) -> str:
    """token 入库前先做 SHA-256，数据库中不保存明文 token"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
