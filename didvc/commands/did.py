import json
from typing import Optional

import click

from didvc.config import settings
from didvc.did import DIDResolver, did_document_url
from didvc.keys import KeyManager
from didvc.utils import save_json


@click.group("did")
def did():
    """Inspect the issuer's did:web identity"""
    pass


@did.command("show")
@click.option(
    "--base-url",
    default=settings.base_url,
    show_default=True,
    help="Public base address the did:web identifier is derived from.",
)
@click.option(
    "--key-dir",
    type=click.Path(file_okay=False),
    default=str(settings.key_dir),
    show_default=True,
    help="Directory holding private.pem and public.pem.",
)
@click.option(
    "--output-did-document",
    type=click.Path(dir_okay=False, writable=True),
    help="Output file for the DID Document (did.json).",
)
def show_did(base_url: str, key_dir: str, output_did_document: Optional[str]):
    """Prints the issuer DID and its DID document."""
    try:
        key_manager = KeyManager(key_dir)
        resolver = DIDResolver(key_manager, base_url)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        return
    key_manager.initialize()

    issuer_did = resolver.self_did()
    click.echo(click.style(f"DID: {issuer_did}", fg="cyan"))
    click.echo(click.style(f"Verification Method: {resolver.self_key_id()}", fg="yellow"))
    click.echo(f"Document URL: {did_document_url(issuer_did)}")

    did_document = resolver.self_did_document().to_dict()
    click.echo("\nDID Document:")
    click.echo(json.dumps(did_document, indent=2))

    if output_did_document:
        save_json(did_document, output_did_document, "DID Document")
