"""Password hashing for local credentials."""

from passlib.context import CryptContext

# Fixed work factor for bcrypt salts.
BCRYPT_ROUNDS = 10

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS
)


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh salt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash using the library's comparison."""
    return pwd_context.verify(plain_password, hashed_password)
