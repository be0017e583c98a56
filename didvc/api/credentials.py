from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from didvc.api.dependencies import get_engine
from didvc.credentials import CredentialEngine
from didvc.exceptions import CanonicalizationError, DuplicateCredentialError
from didvc.logging import get_logger
from didvc.models import (
    Credential,
    DeleteCredentialResponse,
    IssueCredentialRequest,
    VerificationResult,
    VerifyCredentialRequest,
)

logger = get_logger(__name__)

router = APIRouter(
    prefix="/credentials",
    tags=["Credentials"],
)


@router.post("/issue", response_model=Credential, status_code=status.HTTP_201_CREATED)
async def issue_credential(
    issue_request: IssueCredentialRequest,
    engine: CredentialEngine = Depends(get_engine),
):
    """
    Issues a new credential signed by this service's key.

    - **type**: Label for the credential.
    - **claims**: Arbitrary JSON object of claims.
    """
    try:
        return engine.issue(issue_request.type, issue_request.claims)
    except CanonicalizationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DuplicateCredentialError as e:
        # uuid4 collision; nothing was overwritten.
        logger.error(f"Issued credential id collided with a stored one: {e}")
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=List[Credential])
async def list_credentials(engine: CredentialEngine = Depends(get_engine)):
    """Lists all stored credentials in issuance order."""
    return engine.list()


@router.post("/verify", response_model=VerificationResult)
async def verify_credential(
    verify_request: VerifyCredentialRequest,
    engine: CredentialEngine = Depends(get_engine),
):
    """
    Verifies a presented credential.

    Always answers 200; an invalid credential is reported as `valid: false`
    with a reason in `error`.
    """
    return await engine.verify(verify_request.credential)


@router.get("/{credential_id}", response_model=Credential)
async def get_credential(credential_id: str, engine: CredentialEngine = Depends(get_engine)):
    """Retrieves a stored credential by id."""
    credential = engine.get(credential_id)
    if credential is None:
        raise HTTPException(status_code=404, detail=f"Credential with ID '{credential_id}' not found.")
    return credential


@router.delete("/{credential_id}", response_model=DeleteCredentialResponse)
async def delete_credential(credential_id: str, engine: CredentialEngine = Depends(get_engine)):
    """Removes a stored credential."""
    deleted = engine.remove(credential_id)
    return DeleteCredentialResponse(
        success=deleted,
        message="Credential deleted" if deleted else "Credential not found",
    )
