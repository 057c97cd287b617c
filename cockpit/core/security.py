from datetime import datetime, timedelta, timezone
from jose import jwt
from passlib.context import CryptContext

# Stored hashes wrap the SHA-256 digest the dashboard client sends, never the raw password.
# Rows written by the wine service come from pgcrypto crypt() (bcrypt, sha256-crypt, md5-crypt);
# hashes created here use pbkdf2_sha256.
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "bcrypt", "sha256_crypt", "md5_crypt"],
    default="pbkdf2_sha256",
    deprecated="auto",
)

def hash_password(password_digest: str) -> str:
    return pwd_context.hash(password_digest)

def verify_password(password_digest: str, password_hash: str) -> bool:
    if not password_digest or not password_hash:
        return False
    try:
        return pwd_context.verify(password_digest, password_hash)
    except ValueError:
        # Unknown or malformed hash format in the credential table.
        return False

def create_jwt(payload: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    data = payload.copy()
    data.update({"iat": int(now.timestamp()), "exp": int((now + expires_delta).timestamp())})
    return jwt.encode(data, secret, algorithm="HS256")

def decode_jwt(token: str, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=["HS256"], options={"require_exp": True})
