import hashlib
import logging
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import DateTime, bindparam, text

from services.shared.caching import load_json, store_json
from services.shared.config import DEFAULT_SESSION_TTL_SECONDS


logger = logging.getLogger("sessions")

SESSION_ID_BYTES = 32

STATUS_VALID = "valid"
STATUS_INVALID = "invalid"
STATUS_EXPIRED = "expired"


def generate_session_id() -> str:
    """
    Return 32 random bytes as lowercase hex

    Also used for OAuth anti-forgery state tokens
    """
    return secrets.token_hex(SESSION_ID_BYTES)


def session_id_hash(session_id) -> str:
    return hashlib.sha256((session_id or "").encode("utf-8")).hexdigest()[:8]


@dataclass
class SessionRecord:
    session_id: str
    user_id: int
    username: str
    expires_at: float

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)


@dataclass
class SessionLookup:
    status: str
    record: Optional[SessionRecord] = None

    @property
    def is_valid(self) -> bool:
        return self.status == STATUS_VALID


class SessionStore:
    """
    Session repository over Redis and the relational `sessions` table

    Consistency contract:
        Writes go to Redis first, then to the relational table, without a
        shared transaction. A crash between the two can leave a session in
        only one store. Redis is authoritative for validity: `resolve` never
        reads the table. The table is an audit trail of issued sessions and
        is not pruned on expiry.
    """

    def __init__(
        self,
        redis_client,
        ttl_seconds=DEFAULT_SESSION_TTL_SECONDS,
        key_prefix="stylecheck:session:",
        clock: Callable[[], float] = time.time,
    ):
        self.redis = redis_client
        self.ttl_seconds = int(ttl_seconds)
        self.key_prefix = key_prefix
        self.clock = clock

    def key(self, session_id) -> str:
        return f"{self.key_prefix}{session_id}"

    def create(self, session, user_id, username) -> SessionRecord:
        """
        Mint a session for a user and write it to both stores

        Args:
            session: SQLAlchemy session (caller owns the transaction)
            user_id (int): Internal user id
            username (str): Username cached alongside the session

        Returns:
            SessionRecord
        """
        record = SessionRecord(
            session_id=generate_session_id(),
            user_id=int(user_id),
            username=str(username),
            expires_at=float(self.clock()) + self.ttl_seconds,
        )

        store_json(
            self.redis,
            self.key(record.session_id),
            self.ttl_seconds,
            {"user_id": record.user_id, "username": record.username, "expires_at": record.expires_at},
        )

        session.execute(
            text("INSERT INTO sessions (id, user_id, expires_at) VALUES (:id, :user_id, :expires_at)").bindparams(
                bindparam("expires_at", type_=DateTime(timezone=True))
            ),
            {"id": record.session_id, "user_id": record.user_id, "expires_at": record.expires_at_datetime},
        )

        logger.info(
            "session created user_id=%s session=%s ttl_seconds=%s",
            record.user_id,
            session_id_hash(record.session_id),
            self.ttl_seconds,
        )
        return record

    def resolve(self, session_id) -> SessionLookup:
        """
        Look up a session in Redis

        An entry past its expiry instant is deleted and reported as expired

        Args:
            session_id (str): Session id from the cookie

        Returns:
            SessionLookup
        """
        if not session_id:
            return SessionLookup(status=STATUS_INVALID)

        key = self.key(session_id)
        payload = load_json(self.redis, key)
        if not payload or payload.get("user_id") is None:
            return SessionLookup(status=STATUS_INVALID)

        try:
            record = SessionRecord(
                session_id=session_id,
                user_id=int(payload["user_id"]),
                username=str(payload.get("username") or ""),
                expires_at=float(payload.get("expires_at") or 0),
            )
        except (TypeError, ValueError):
            logger.warning("session payload malformed session=%s", session_id_hash(session_id))
            return SessionLookup(status=STATUS_INVALID)

        if self.clock() > record.expires_at:
            self.redis.delete(key)
            logger.info("session expired session=%s user_id=%s", session_id_hash(session_id), record.user_id)
            return SessionLookup(status=STATUS_EXPIRED, record=record)

        return SessionLookup(status=STATUS_VALID, record=record)

    def delete(self, session, session_id) -> None:
        """
        Remove a session from both stores

        Args:
            session: SQLAlchemy session
            session_id (str): Session id

        Returns:
            None
        """
        if not session_id:
            return

        self.redis.delete(self.key(session_id))
        session.execute(text("DELETE FROM sessions WHERE id = :id"), {"id": session_id})
        logger.info("session deleted session=%s", session_id_hash(session_id))
