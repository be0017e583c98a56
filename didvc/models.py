from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

ISSUER_SELF = "self"
PROOF_TYPE = "RsaSignature2018"
PROOF_PURPOSE = "assertionMethod"
VERIFICATION_KEY_TYPE = "RsaVerificationKey2018"
KEY_FRAGMENT = "key-1"
DID_CONTEXTS = [
    "https://www.w3.org/ns/did/v1",
    "https://w3id.org/security/suites/rsa-2018/v1",
]

# The signed payload is exactly these fields, never the proof.
PAYLOAD_FIELDS = ("id", "type", "claims", "issuer", "issuedAt")


# === Credential Models ===

class Proof(BaseModel):
    type: str
    created: str
    proofPurpose: str
    verificationMethod: str
    signatureValue: str


class Credential(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    claims: Dict[str, Any]
    issuer: str
    issuedAt: str
    proof: Proof


class PresentedProof(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    created: Optional[str] = None
    proofPurpose: Optional[str] = None
    verificationMethod: Optional[str] = None
    signatureValue: Optional[str] = None


class PresentedCredential(BaseModel):
    """A credential as received for verification.

    Every field may be missing. Payload fields keep whatever JSON value was
    presented, so the signed payload is rebuilt exactly; fields that were
    absent stay absent (see `model_fields_set`).
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: Any = None
    claims: Any = None
    issuer: Any = None
    issuedAt: Any = None
    proof: Optional[PresentedProof] = None


class VerificationResult(BaseModel):
    valid: bool
    error: Optional[str] = None

    @classmethod
    def invalid(cls, error: str) -> "VerificationResult":
        return cls(valid=False, error=error)


# === DID Document Models ===

class VerificationMethod(BaseModel):
    id: str
    type: str
    controller: str
    publicKeyPem: str


class DIDDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    context: List[str] = Field(..., alias='@context')
    id: str
    verificationMethod: List[VerificationMethod]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# === API request/response bodies ===

class IssueCredentialRequest(BaseModel):
    type: str = Field(..., min_length=1)
    claims: Dict[str, Any]


class VerifyCredentialRequest(BaseModel):
    credential: Dict[str, Any]


class DeleteCredentialResponse(BaseModel):
    success: bool
    message: str
