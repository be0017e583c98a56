from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from didvc.exceptions import DuplicateCredentialError
from didvc.logging import get_logger
from didvc.models import Credential
from didvc.store.database import create_session_factory
from didvc.store.models import StoredCredentialModel

logger = get_logger(__name__)


def get_stored_credential(db: Session, credential_id: str) -> Optional[StoredCredentialModel]:
    """Retrieves a stored credential row by credential id."""
    return db.execute(
        select(StoredCredentialModel).where(StoredCredentialModel.credential_id == credential_id)
    ).scalar_one_or_none()


class CredentialStore:
    """
    Issued credentials keyed by credential id.

    An id maps to at most one credential. Storing the same credential twice is
    a no-op; storing a different credential under a taken id raises
    `DuplicateCredentialError`.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "CredentialStore":
        return cls(create_session_factory(database_url))

    def put(self, credential: Credential) -> Credential:
        """Stores `credential`, or returns the identical one already stored under its id."""
        credential_json = credential.model_dump_json()
        with self.session_factory() as db:
            existing = get_stored_credential(db, credential.id)
            if existing is None:
                db.add(StoredCredentialModel(
                    credential_id=credential.id,
                    credential_json=credential_json,
                    credential_type=credential.type,
                    issued_at=credential.issuedAt,
                ))
                try:
                    db.commit()
                    return credential
                except IntegrityError:
                    # Lost an insert race for the same id; compare with the winner.
                    db.rollback()
                    existing = get_stored_credential(db, credential.id)

            stored = Credential.model_validate_json(existing.credential_json)
            if stored != credential:
                raise DuplicateCredentialError(
                    f"Credential with id '{credential.id}' already exists with different content."
                )
            logger.debug(f"Credential {credential.id} already stored; no action taken.")
            return stored

    def get(self, credential_id: str) -> Optional[Credential]:
        with self.session_factory() as db:
            row = get_stored_credential(db, credential_id)
            if row is None:
                return None
            return Credential.model_validate_json(row.credential_json)

    def delete(self, credential_id: str) -> bool:
        with self.session_factory() as db:
            row = get_stored_credential(db, credential_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

    def list(self) -> List[Credential]:
        with self.session_factory() as db:
            rows = db.execute(
                select(StoredCredentialModel).order_by(StoredCredentialModel.pk)
            ).scalars().all()
            return [Credential.model_validate_json(row.credential_json) for row in rows]
