class DidvcError(Exception):
    """Base class for exceptions in the didvc library."""
    pass

class KeyNotInitializedError(DidvcError):
    """Raised when signing is attempted before the key pair is initialized."""
    pass

class CanonicalizationError(DidvcError):
    """Raised when a value cannot be canonicalized to JSON."""
    pass

class SignatureError(DidvcError):
    """Raised when there is an error with a cryptographic key or signature."""
    pass

class DIDResolutionError(DidvcError):
    """Raised when a DID cannot be resolved."""
    pass

class UnsupportedDIDError(DIDResolutionError):
    """Raised when a did:web identifier names a domain this service does not host."""
    pass

class CredentialStoreError(DidvcError):
    """Raised when the credential store rejects an operation."""
    pass

class DuplicateCredentialError(CredentialStoreError):
    """Raised when a different credential is stored under an existing id."""
    pass
