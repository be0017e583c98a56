from fastapi import Request

from didvc.credentials import CredentialEngine
from didvc.did import DIDResolver


def get_engine(request: Request) -> CredentialEngine:
    """Dependency returning the credential engine built by `create_app`."""
    return request.app.state.engine


def get_resolver(request: Request) -> DIDResolver:
    """Dependency returning the DID resolver built by `create_app`."""
    return request.app.state.resolver
