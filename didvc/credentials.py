import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from didvc.canonical import canonicalize
from didvc.did import DIDResolver
from didvc.exceptions import DIDResolutionError
from didvc.keys import KeyManager
from didvc.logging import get_logger
from didvc.models import (
    ISSUER_SELF,
    PAYLOAD_FIELDS,
    PROOF_PURPOSE,
    PROOF_TYPE,
    Credential,
    PresentedCredential,
    Proof,
    VerificationResult,
)
from didvc.store.crud import CredentialStore

logger = get_logger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def credential_payload(credential: Union[Credential, PresentedCredential, Mapping[str, Any]]) -> str:
    """Canonical string of the signed fields of a credential.

    Fields a presented credential does not carry are left out rather than
    encoded as null, so the payload matches what was signed.
    """
    if isinstance(credential, Credential):
        data = credential.model_dump(include=set(PAYLOAD_FIELDS))
    elif isinstance(credential, PresentedCredential):
        data = credential.model_dump(include=set(PAYLOAD_FIELDS), exclude_unset=True)
    else:
        data = {field: credential[field] for field in PAYLOAD_FIELDS if field in credential}
    return canonicalize(data)


class CredentialEngine:
    """Issues credentials signed by this issuer's key and verifies presented ones."""

    def __init__(self, key_manager: KeyManager, resolver: DIDResolver, store: CredentialStore):
        self.key_manager = key_manager
        self.resolver = resolver
        self.store = store

    def issue(self, credential_type: str, claims: Dict[str, Any]) -> Credential:
        """Builds, signs and stores a new credential."""
        issued_at = utc_timestamp()
        payload = {
            "id": str(uuid.uuid4()),
            "type": credential_type,
            "claims": claims,
            "issuer": ISSUER_SELF,
            "issuedAt": issued_at,
        }
        signature = self.key_manager.sign(canonicalize(payload))

        credential = Credential(
            **payload,
            proof=Proof(
                type=PROOF_TYPE,
                created=issued_at,
                proofPurpose=PROOF_PURPOSE,
                verificationMethod=self.resolver.self_key_id(),
                signatureValue=signature,
            ),
        )
        self.store.put(credential)
        logger.info(f"Issued credential {credential.id} of type '{credential_type}'")
        return credential

    async def verify(self, presented: Union[PresentedCredential, Mapping[str, Any]]) -> VerificationResult:
        """Verifies a presented credential against the key its proof references.

        Never raises: every failure, including malformed input and internal
        errors, comes back as an invalid result with a reason.
        """
        try:
            return await self._verify(presented)
        except Exception as e:
            logger.warning(f"Verification failed: {type(e).__name__} - {e}")
            return VerificationResult.invalid(f"Verification failed: {e}")

    async def _verify(self, presented: Union[PresentedCredential, Mapping[str, Any]]) -> VerificationResult:
        if not isinstance(presented, PresentedCredential):
            presented = PresentedCredential.model_validate(presented)

        if not presented.id or not presented.proof or not presented.proof.signatureValue:
            return VerificationResult.invalid("Credential missing required fields")

        if not presented.proof.verificationMethod:
            return VerificationResult.invalid("Credential missing verificationMethod in proof")

        try:
            verification_method = await self.resolver.verification_method(presented.proof.verificationMethod)
        except DIDResolutionError as e:
            logger.info(f"Could not resolve {presented.proof.verificationMethod}: {e}")
            return VerificationResult.invalid(f"Failed to resolve DID or verification method not found: {e}")
        if verification_method is None:
            return VerificationResult.invalid("Failed to resolve DID or verification method not found")

        payload = credential_payload(presented)

        if not self.key_manager.verify(payload, presented.proof.signatureValue, verification_method.publicKeyPem):
            return VerificationResult.invalid("Invalid signature")

        stored = self.store.get(presented.id)
        if stored is not None and credential_payload(stored) != payload:
            logger.warning(f"Presented credential {presented.id} differs from the stored copy")
            return VerificationResult.invalid("Credential has been tampered with")

        return VerificationResult(valid=True)

    def get(self, credential_id: str) -> Optional[Credential]:
        return self.store.get(credential_id)

    def list(self) -> List[Credential]:
        return self.store.list()

    def remove(self, credential_id: str) -> bool:
        removed = self.store.delete(credential_id)
        if removed:
            logger.info(f"Removed credential {credential_id}")
        return removed
