"""
Credential store: account registration and password verification.
"""

import asyncio
from datetime import datetime, timezone
from uuid import uuid4

import aiosqlite
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from diary.database.db import connect
from diary.errors import AuthError, ConflictError, StorageError, Unauthorized, ValidationError
from diary.logging import get_logger
from diary.models import User

logger = get_logger('services.credentials')

DUPLICATE_EMAIL = "Email already registered. Please login."


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _row_to_user(row: dict) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        created_at=row["created_at"],
    )


class CredentialStore:
    """Persists users and validates credentials. The hash never leaves this class."""

    def __init__(
        self,
        db_path: str,
        hasher: PasswordHasher | None = None,
        min_password_length: int = 6,
    ):
        self.db_path = db_path
        self.hasher = hasher or PasswordHasher()
        self.min_password_length = min_password_length
        # Verified against for unknown emails so both failure paths cost the same.
        self._dummy_hash = self.hasher.hash(uuid4().hex)

    async def _get_db(self) -> aiosqlite.Connection:
        return await connect(self.db_path)

    def _validate_registration(
        self, name: str, email: str, password: str, password_confirm: str
    ) -> None:
        if not name.strip() or not email.strip() or not password:
            raise ValidationError("All fields are required.")
        if "@" not in email:
            raise ValidationError("Email address is not valid.")
        if len(password) < self.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.min_password_length} characters."
            )
        if password != password_confirm:
            raise ValidationError("Passwords do not match.")

    async def register(
        self, name: str, email: str, password: str, password_confirm: str
    ) -> User:
        self._validate_registration(name, email, password, password_confirm)
        user = User(
            id=str(uuid4()),
            name=name.strip(),
            email=normalize_email(email),
            created_at=_now(),
        )
        password_hash = await asyncio.to_thread(self.hasher.hash, password)

        db = await self._get_db()
        try:
            cursor = await db.execute(
                "SELECT id FROM users WHERE email = ?", (user.email,)
            )
            if await cursor.fetchone():
                raise ConflictError(DUPLICATE_EMAIL)
            await db.execute(
                """INSERT INTO users (id, name, email, password_hash, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (user.id, user.name, user.email, password_hash, user.created_at.isoformat()),
            )
            await db.commit()
        except aiosqlite.IntegrityError:
            # Lost a race with a concurrent registration for the same address.
            raise ConflictError(DUPLICATE_EMAIL) from None
        except aiosqlite.Error as e:
            logger.error(f"register failed for user {user.id[:8]}: {e}")
            raise StorageError("Registration failed. Please try again.") from e
        finally:
            await db.close()

        logger.info(f"User registered: {user.id[:8]}")
        return user

    async def verify(self, email: str, password: str) -> User:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required.")

        db = await self._get_db()
        try:
            cursor = await db.execute(
                "SELECT id, name, email, password_hash, created_at FROM users WHERE email = ?",
                (email,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error(f"verify lookup failed: {e}")
            raise StorageError("Login failed. Please try again.") from e
        finally:
            await db.close()

        # argon2 is CPU-bound; hashing and verifying run off the event loop.
        if row is None:
            await asyncio.to_thread(self._check, self._dummy_hash, password)
            logger.info("Failed login for unknown email")
            raise AuthError()

        row = dict(row)
        if not await asyncio.to_thread(self._check, row["password_hash"], password):
            logger.info(f"Failed login for user {row['id'][:8]}")
            raise AuthError()

        if self.hasher.check_needs_rehash(row["password_hash"]):
            new_hash = await asyncio.to_thread(self.hasher.hash, password)
            await self._store_hash(row["id"], new_hash)

        return _row_to_user(row)

    def _check(self, password_hash: str, password: str) -> bool:
        try:
            return self.hasher.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError):
            logger.warning("Stored password hash could not be verified")
            return False

    async def _store_hash(self, user_id: str, password_hash: str) -> None:
        db = await self._get_db()
        try:
            await db.execute(
                "UPDATE users SET password_hash = ? WHERE id = ?",
                (password_hash, user_id),
            )
            await db.commit()
        except aiosqlite.Error as e:
            logger.warning(f"Could not upgrade password hash for user {user_id[:8]}: {e}")
        finally:
            await db.close()

    async def get_user(self, user_id: str) -> User | None:
        db = await self._get_db()
        try:
            cursor = await db.execute(
                "SELECT id, name, email, created_at FROM users WHERE id = ?",
                (user_id,),
            )
            row = await cursor.fetchone()
            return _row_to_user(dict(row)) if row else None
        except aiosqlite.Error as e:
            logger.error(f"get_user failed for user {user_id[:8]}: {e}")
            raise StorageError("Failed to get user.") from e
        finally:
            await db.close()

    async def rename(self, user_id: str, name: str) -> User:
        name = name.strip()
        if not name:
            raise ValidationError("Name is required.")
        db = await self._get_db()
        try:
            cursor = await db.execute(
                "UPDATE users SET name = ? WHERE id = ?", (name, user_id)
            )
            await db.commit()
            updated = cursor.rowcount > 0
        except aiosqlite.Error as e:
            logger.error(f"rename failed for user {user_id[:8]}: {e}")
            raise StorageError() from e
        finally:
            await db.close()
        if not updated:
            raise Unauthorized()
        user = await self.get_user(user_id)
        if user is None:
            raise Unauthorized()
        return user
