from typing import List, Optional
from urllib.parse import quote, unquote, urlparse

from didvc.exceptions import DIDResolutionError, UnsupportedDIDError
from didvc.keys import KeyManager
from didvc.logging import get_logger
from didvc.models import (
    DID_CONTEXTS,
    KEY_FRAGMENT,
    VERIFICATION_KEY_TYPE,
    DIDDocument,
    VerificationMethod,
)

logger = get_logger(__name__)

DID_WEB_PREFIX = "did:web:"
DEFAULT_PORTS = (80, 443)
LOCAL_HOSTS = ("localhost", "127.0.0.1")


def did_web_from_url(base_url: str) -> str:
    """Builds the did:web identifier for a base address.

    A non-default port is kept on the domain as `%3A<port>` and each path
    segment becomes a further `:`-separated component, percent-encoded so it
    cannot contain a bare `:`.

        >>> did_web_from_url("http://localhost:3000")
        'did:web:localhost%3A3000'
        >>> did_web_from_url("https://example.com/issuers/acme")
        'did:web:example.com:issuers:acme'
    """
    parsed = urlparse(base_url)
    if not parsed.hostname:
        raise ValueError(f"Base URL '{base_url}' has no host.")
    if ":" in parsed.hostname:
        raise ValueError(f"Base URL '{base_url}' has an IPv6 host, which a did:web identifier cannot name.")

    domain = parsed.hostname
    port = parsed.port
    if port and port not in DEFAULT_PORTS:
        domain = f"{domain}%3A{port}"

    segments = [quote(unquote(segment), safe="") for segment in parsed.path.split("/") if segment]
    return DID_WEB_PREFIX + ":".join([domain] + segments)


def _decoded_components(did: str) -> Optional[List[str]]:
    """Splits a did:web into its percent-decoded domain and path components."""
    if not isinstance(did, str) or not did.startswith(DID_WEB_PREFIX):
        return None
    identifier = did[len(DID_WEB_PREFIX):]
    if "#" in identifier or "?" in identifier:
        return None
    parts = [unquote(part) for part in identifier.split(":")]
    if not parts[0] or not all(parts):
        return None
    parts[0] = parts[0].lower()
    return parts


def did_document_url(did: str) -> str:
    """Maps a did:web identifier to the URL its DID document is published at.

    `did:web:example.com` resolves to `https://example.com/.well-known/did.json`,
    `did:web:example.com:users:alice` to `https://example.com/users/alice/did.json`.
    Local hosts are served over plain http.

    Raises:
        DIDResolutionError: If `did` is not a well-formed did:web identifier.
    """
    parts = _decoded_components(did)
    if parts is None:
        raise DIDResolutionError(f"'{did}' is not a well-formed did:web identifier.")

    host_plus_port = parts[0]
    scheme = "http" if host_plus_port.startswith(LOCAL_HOSTS) else "https"
    if len(parts) == 1:
        return f"{scheme}://{host_plus_port}/.well-known/did.json"
    return f"{scheme}://{host_plus_port}/{'/'.join(parts[1:])}/did.json"


class DIDResolver:
    """
    did:web identity of this issuer.

    Derives the issuer's DID from its configured base address and resolves
    identifiers to DID documents. Only the issuer's own identifier is
    resolvable; any other did:web identifier is reported as unsupported since
    documents are never fetched over the network.
    """

    def __init__(self, key_manager: KeyManager, base_url: str):
        self.key_manager = key_manager
        self.base_url = base_url
        self._did = did_web_from_url(base_url)
        self._components = _decoded_components(self._did)
        if self._components is None:
            raise ValueError(f"Base URL '{base_url}' does not map to a resolvable did:web identifier ({self._did}).")

    def self_did(self) -> str:
        return self._did

    def self_key_id(self) -> str:
        return f"{self._did}#{KEY_FRAGMENT}"

    def self_did_document(self) -> DIDDocument:
        """Assembles this issuer's DID document from its DID and current public key."""
        did = self.self_did()
        return DIDDocument(
            context=list(DID_CONTEXTS),
            id=did,
            verificationMethod=[
                VerificationMethod(
                    id=self.self_key_id(),
                    type=VERIFICATION_KEY_TYPE,
                    controller=did,
                    publicKeyPem=self.key_manager.public_key_pem,
                )
            ],
        )

    def is_self(self, did: str) -> bool:
        return _decoded_components(did) == self._components

    async def resolve(self, did: str) -> Optional[DIDDocument]:
        """Resolves a did:web identifier to its DID document.

        Returns None when `did` is not a well-formed did:web identifier.

        Raises:
            UnsupportedDIDError: If `did` names a domain or path this issuer does not host.
        """
        if _decoded_components(did) is None:
            logger.info(f"Cannot resolve '{did}': not a did:web identifier.")
            return None

        if not self.is_self(did):
            raise UnsupportedDIDError(
                f"{did} is not hosted by this issuer ({self._did}); "
                f"fetching {did_document_url(did)} is not supported."
            )

        logger.debug(f"Resolved {did} locally (published at {did_document_url(did)}).")
        return self.self_did_document()

    async def verification_method(self, did_url: str) -> Optional[VerificationMethod]:
        """Finds the verification method a `<did>#<fragment>` reference points to.

        The reference must hold exactly one `#` with a non-empty fragment on its
        right. Returns None when it is malformed, the DID does not resolve, or
        the document has no method with that id.

        Raises:
            UnsupportedDIDError: If the DID names a domain this issuer does not host.
        """
        if not isinstance(did_url, str) or did_url.count("#") != 1:
            return None
        did, fragment = did_url.split("#")
        if not fragment:
            return None

        did_document = await self.resolve(did)
        if did_document is None:
            return None

        method_id = f"{did}#{fragment}"
        for verification_method in did_document.verificationMethod:
            if verification_method.id == method_id:
                return verification_method
        return None
