import asyncio
import json
from typing import Optional

import click

from didvc.config import settings
from didvc.utils import build_local_engine, load_credential_from_file, parse_claims, save_json

KEY_DIR_OPTION = click.option(
    "--key-dir",
    type=click.Path(file_okay=False),
    default=str(settings.key_dir),
    show_default=True,
    help="Directory holding private.pem and public.pem.",
)
BASE_URL_OPTION = click.option(
    "--base-url",
    default=settings.base_url,
    show_default=True,
    help="Public base address the issuer DID is derived from.",
)


@click.group("credential")
def credential():
    """Issue and verify credentials offline with the local key pair"""
    pass


@credential.command("issue")
@click.option("--type", "credential_type", required=True, help="Type label of the credential.")
@click.option("--claims", "claims_json", help="Claims as an inline JSON object.")
@click.option(
    "--claims-file",
    "claims_file_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to a JSON file holding the claims object.",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    help="Output file for the signed credential (JSON).",
)
@KEY_DIR_OPTION
@BASE_URL_OPTION
def issue_credential(
    credential_type: str,
    claims_json: Optional[str],
    claims_file_path: Optional[str],
    output_path: Optional[str],
    key_dir: str,
    base_url: str,
):
    """Signs a new credential with the key pair in --key-dir."""
    claims = parse_claims(claims_json, claims_file_path)
    if claims is None:
        return

    try:
        engine = build_local_engine(key_dir, base_url)
        issued = engine.issue(credential_type, claims)
    except Exception as e:
        click.echo(click.style(f"Error issuing credential: {e}", fg="red"), err=True)
        return

    credential_data = issued.model_dump()
    if output_path:
        save_json(credential_data, output_path, "Credential")
    else:
        click.echo(json.dumps(credential_data, indent=2))


@credential.command("verify")
@click.option(
    "--credential-file",
    "credential_file_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    required=True,
    help="Path to the credential JSON file.",
)
@KEY_DIR_OPTION
@BASE_URL_OPTION
def verify_credential(credential_file_path: str, key_dir: str, base_url: str):
    """Verifies a credential against the DID document of this issuer."""
    credential_data = load_credential_from_file(credential_file_path)
    if credential_data is None:
        return

    try:
        engine = build_local_engine(key_dir, base_url)
    except Exception as e:
        click.echo(click.style(f"Error loading issuer keys: {e}", fg="red"), err=True)
        return

    result = asyncio.run(engine.verify(credential_data))
    if result.valid:
        click.echo(click.style("Credential is valid.", fg="green"))
    else:
        click.echo(click.style(f"Credential is invalid: {result.error}", fg="red"))
