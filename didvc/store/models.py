from sqlalchemy import Column, DateTime, Integer, String, Text, func
from didvc.store.database import Base

class StoredCredentialModel(Base):
    __tablename__ = "stored_credentials"

    # Surrogate key; keeps listing in issuance order.
    pk = Column(Integer, primary_key=True, autoincrement=True)
    credential_id = Column(String, index=True, unique=True, nullable=False)
    credential_json = Column(Text, nullable=False)

    credential_type = Column(String, index=True, nullable=True)
    issued_at = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<StoredCredentialModel(credential_id='{self.credential_id}', credential_type='{self.credential_type}')>"
