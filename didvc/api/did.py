from typing import Any, Dict

from fastapi import APIRouter, Depends

from didvc.api.dependencies import get_resolver
from didvc.did import DIDResolver

router = APIRouter(tags=["DID"])


@router.get("/.well-known/did.json", response_model=Dict[str, Any])
async def get_did_document(resolver: DIDResolver = Depends(get_resolver)):
    """Serves this issuer's did:web DID document."""
    return resolver.self_did_document().to_dict()
