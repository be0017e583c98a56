import copy
import uuid

import pytest

from didvc.canonical import canonicalize
from didvc.credentials import CredentialEngine, credential_payload, utc_timestamp
from didvc.did import DIDResolver
from didvc.keys import KeyManager
from didvc.models import PresentedCredential

from conftest import SELF_DID


def test_issue_builds_signed_credential(engine, key_manager, store):
    """Issuing {type: Test, claims: {name: John}} yields a stored, signed credential."""
    # Act
    credential = engine.issue("Test", {"name": "John"})

    # Assert
    assert credential.id
    uuid.UUID(credential.id)
    assert credential.type == "Test"
    assert credential.claims == {"name": "John"}
    assert credential.issuer == "self"
    assert credential.issuedAt.endswith("Z")
    assert credential.proof.type == "RsaSignature2018"
    assert credential.proof.created == credential.issuedAt
    assert credential.proof.proofPurpose == "assertionMethod"
    assert credential.proof.verificationMethod == f"{SELF_DID}#key-1"
    assert key_manager.verify(credential_payload(credential), credential.proof.signatureValue)
    assert store.get(credential.id) == credential


def test_issue_assigns_unique_ids(engine):
    ids = {engine.issue("Test", {"n": i}).id for i in range(5)}
    assert len(ids) == 5


def test_credential_payload_excludes_proof(engine):
    credential = engine.issue("Test", {"b": 2, "a": 1})
    payload = credential_payload(credential)

    assert "proof" not in payload
    assert payload == canonicalize({
        "id": credential.id,
        "type": "Test",
        "claims": {"a": 1, "b": 2},
        "issuer": "self",
        "issuedAt": credential.issuedAt,
    })
    assert credential_payload(credential.model_dump()) == payload
    assert credential_payload(PresentedCredential.model_validate(credential.model_dump())) == payload


def test_credential_payload_omits_absent_fields():
    presented = PresentedCredential.model_validate({"id": "x", "type": None})
    assert credential_payload(presented) == '{"id":"x","type":null}'


def test_utc_timestamp_format():
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2024-05-01T12:00:00.000Z")


@pytest.mark.asyncio
async def test_verify_issued_credential(engine):
    credential = engine.issue("Test", {"name": "John"})

    result = await engine.verify(credential.model_dump())

    assert result.valid is True
    assert result.error is None


@pytest.mark.asyncio
async def test_verify_accepts_presented_model(engine):
    credential = engine.issue("Test", {"nested": {"list": [1, {"z": True, "a": None}]}})
    result = await engine.verify(PresentedCredential.model_validate(credential.model_dump()))
    assert result.valid is True


@pytest.mark.asyncio
async def test_verify_issued_credential_not_in_store(engine, store):
    """A validly signed credential the store no longer holds still verifies."""
    credential = engine.issue("Test", {"name": "John"})
    store.delete(credential.id)

    result = await engine.verify(credential.model_dump())

    assert result.valid is True


@pytest.mark.asyncio
async def test_verify_detects_modified_claim(engine):
    data = engine.issue("Test", {"name": "John", "age": 30}).model_dump()
    data["claims"]["name"] = "Mallory"

    result = await engine.verify(data)

    assert result.valid is False
    assert result.error == "Invalid signature"


@pytest.mark.asyncio
@pytest.mark.parametrize("field, value", [("type", "Admin"), ("issuer", "someone"), ("issuedAt", "2000-01-01T00:00:00.000Z")])
async def test_verify_detects_modified_payload_field(engine, field, value):
    data = engine.issue("Test", {"name": "John"}).model_dump()
    data[field] = value

    result = await engine.verify(data)

    assert result.valid is False


@pytest.mark.asyncio
async def test_verify_rejects_arbitrary_signature_value(engine):
    data = engine.issue("Test", {"name": "John"}).model_dump()
    data["proof"]["signatureValue"] = "definitely-not-a-signature"

    result = await engine.verify(data)

    assert result.valid is False
    assert "signature" in result.error.lower()


@pytest.mark.asyncio
async def test_verify_requires_verification_method(engine):
    data = engine.issue("Test", {"name": "John"}).model_dump()
    del data["proof"]["verificationMethod"]

    result = await engine.verify(data)

    assert result.valid is False
    assert "verificationMethod" in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "mutate",
    [
        lambda data: data.pop("id"),
        lambda data: data.pop("proof"),
        lambda data: data["proof"].pop("signatureValue"),
        lambda data: data.update(id=""),
    ],
)
async def test_verify_requires_core_fields(engine, mutate):
    data = engine.issue("Test", {"name": "John"}).model_dump()
    mutate(data)

    result = await engine.verify(data)

    assert result.valid is False
    assert result.error == "Credential missing required fields"


@pytest.mark.asyncio
async def test_verify_unknown_fragment_fails_resolution(engine):
    data = engine.issue("Test", {"name": "John"}).model_dump()
    data["proof"]["verificationMethod"] = f"{SELF_DID}#key-2"

    result = await engine.verify(data)

    assert result.valid is False
    assert result.error == "Failed to resolve DID or verification method not found"


@pytest.mark.asyncio
async def test_verify_foreign_did_is_unsupported(engine):
    data = engine.issue("Test", {"name": "John"}).model_dump()
    data["proof"]["verificationMethod"] = "did:web:example.com#key-1"

    result = await engine.verify(data)

    assert result.valid is False
    assert result.error.startswith("Failed to resolve DID or verification method not found")
    assert "not hosted by this issuer" in result.error


@pytest.mark.asyncio
async def test_verify_foreign_signed_credential(engine, tmp_path):
    """A credential signed by another key but pointing at this issuer's DID fails the signature check."""
    # Arrange
    foreign_keys = KeyManager(tmp_path / "foreign")
    foreign_keys.initialize()
    payload = {
        "id": str(uuid.uuid4()),
        "type": "Test",
        "claims": {"name": "John"},
        "issuer": "self",
        "issuedAt": utc_timestamp(),
    }
    presented = dict(
        payload,
        proof={
            "type": "RsaSignature2018",
            "created": payload["issuedAt"],
            "proofPurpose": "assertionMethod",
            "verificationMethod": f"{SELF_DID}#key-1",
            "signatureValue": foreign_keys.sign(canonicalize(payload)),
        },
    )

    # Act
    result = await engine.verify(presented)

    # Assert
    assert result.valid is False
    assert result.error == "Invalid signature"


@pytest.mark.asyncio
async def test_verify_detects_mismatch_with_stored_copy(engine, key_manager):
    """A correctly signed credential that reuses a stored id with other content is tampered."""
    original = engine.issue("Test", {"name": "John"})
    forged = original.model_dump()
    forged["claims"] = {"name": "John", "role": "admin"}
    forged["proof"]["signatureValue"] = key_manager.sign(credential_payload(forged))

    result = await engine.verify(forged)

    assert result.valid is False
    assert result.error == "Credential has been tampered with"


@pytest.mark.asyncio
async def test_verify_reports_internal_failures(engine, mocker):
    """Unexpected errors come back as invalid results instead of propagating."""
    data = engine.issue("Test", {"name": "John"}).model_dump()
    mocker.patch.object(engine.resolver, "verification_method", side_effect=RuntimeError("boom"))

    result = await engine.verify(data)

    assert result.valid is False
    assert result.error == "Verification failed: boom"


@pytest.mark.asyncio
async def test_verify_reports_malformed_public_key(key_manager, store, tmp_path):
    """A DID document carrying an unparseable key yields an invalid result."""
    resolver = DIDResolver(key_manager, "http://localhost:3000")
    engine = CredentialEngine(key_manager, resolver, store)
    data = engine.issue("Test", {"name": "John"}).model_dump()

    broken = KeyManager(tmp_path / "broken")
    broken._public_key_pem = "-----BEGIN PUBLIC KEY-----\nAAAA\n-----END PUBLIC KEY-----\n"
    resolver.key_manager = broken

    result = await engine.verify(data)

    assert result.valid is False
    assert result.error.startswith("Verification failed: Malformed public key PEM")


@pytest.mark.asyncio
@pytest.mark.parametrize("presented", [{"id": 5, "proof": {}}, {"id": "x", "proof": "nope"}])
async def test_verify_rejects_ill_typed_input(engine, presented):
    result = await engine.verify(presented)
    assert result.valid is False
    assert result.error.startswith("Verification failed")


@pytest.mark.asyncio
async def test_verify_does_not_mutate_input(engine):
    data = engine.issue("Test", {"name": "John"}).model_dump()
    snapshot = copy.deepcopy(data)
    await engine.verify(data)
    assert data == snapshot


def test_engine_store_passthroughs(engine):
    first = engine.issue("Test", {"n": 1})
    second = engine.issue("Other", {"n": 2})

    assert engine.get(first.id) == first
    assert [c.id for c in engine.list()] == [first.id, second.id]
    assert engine.remove(first.id) is True
    assert engine.remove(first.id) is False
    assert engine.get(first.id) is None
