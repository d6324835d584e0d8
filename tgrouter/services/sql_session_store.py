from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tgrouter.logging_config import get_logger
from tgrouter.models import StoredSession
from tgrouter.services.session_store import SessionRecord, SessionStore, SessionStoreError

logger = get_logger("sql_session_store")


class SqlSessionStore(SessionStore):
    """Session store persisted in the session_records table.

    Every call runs in its own ORM session, so one store instance can be
    shared by all request threads.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def set(self, author_id: int, chat_id: int, state_id: int, data: str = "") -> None:
        try:
            with self.session_factory() as db:
                db.merge(StoredSession(author_id=author_id, chat_id=chat_id, state_id=state_id, data=data))
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Session set failed: {e}", extra={"context": {"author_id": author_id, "chat_id": chat_id}})
            raise SessionStoreError("set", str(e)) from e

    def get(self, author_id: int, chat_id: int) -> Optional[SessionRecord]:
        try:
            with self.session_factory() as db:
                row = self._find(db, author_id, chat_id)
                return self._to_record(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Session get failed: {e}", extra={"context": {"author_id": author_id, "chat_id": chat_id}})
            raise SessionStoreError("get", str(e)) from e

    def delete(self, author_id: int, chat_id: int) -> None:
        try:
            with self.session_factory() as db:
                self._delete(db, author_id, chat_id)
                db.commit()
        except SQLAlchemyError as e:
            logger.error(
                f"Session delete failed: {e}", extra={"context": {"author_id": author_id, "chat_id": chat_id}}
            )
            raise SessionStoreError("delete", str(e)) from e

    def take(self, author_id: int, chat_id: int) -> Optional[SessionRecord]:
        """Read and delete in one transaction; only the caller whose delete hits the row gets it."""
        try:
            with self.session_factory() as db:
                row = self._find(db, author_id, chat_id)
                if row is None:
                    return None
                record = self._to_record(row)
                deleted = self._delete(db, author_id, chat_id)
                db.commit()
                return record if deleted else None
        except SQLAlchemyError as e:
            logger.error(f"Session take failed: {e}", extra={"context": {"author_id": author_id, "chat_id": chat_id}})
            raise SessionStoreError("take", str(e)) from e

    @staticmethod
    def _find(db: Session, author_id: int, chat_id: int) -> Optional[StoredSession]:
        return db.get(StoredSession, (author_id, chat_id))

    @staticmethod
    def _delete(db: Session, author_id: int, chat_id: int) -> int:
        return (
            db.query(StoredSession)
            .filter(StoredSession.author_id == author_id, StoredSession.chat_id == chat_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def _to_record(row: StoredSession) -> SessionRecord:
        return SessionRecord(author_id=row.author_id, chat_id=row.chat_id, state_id=row.state_id, data=row.data)
