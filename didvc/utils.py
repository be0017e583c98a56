import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import click

from didvc.credentials import CredentialEngine
from didvc.did import DIDResolver
from didvc.keys import KeyManager
from didvc.store.crud import CredentialStore


def load_json_from_file(json_file_path: str, label: str = "JSON") -> Optional[Any]:
    """Loads a JSON document from a file, reporting problems on stderr."""
    try:
        with open(json_file_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        click.echo(click.style(f"Error: {label} file {json_file_path} not found.", fg="red"), err=True)
        return None
    except json.JSONDecodeError as e:
        click.echo(click.style(f"Error: Invalid JSON in {label} file {json_file_path}: {e}", fg="red"), err=True)
        return None

def load_credential_from_file(credential_file_path: str) -> Optional[Dict[str, Any]]:
    """Loads a credential JSON object from a file."""
    credential_data = load_json_from_file(credential_file_path, label="credential")
    if credential_data is not None and not isinstance(credential_data, dict):
        click.echo(click.style(f"Error: {credential_file_path} does not hold a JSON object.", fg="red"), err=True)
        return None
    return credential_data

def parse_claims(claims_json: Optional[str], claims_file_path: Optional[str]) -> Optional[Dict[str, Any]]:
    """Reads claims from an inline JSON string or a JSON file (exactly one must be given)."""
    if bool(claims_json) == bool(claims_file_path):
        click.echo(click.style("Error: Provide exactly one of --claims or --claims-file.", fg="red"), err=True)
        return None

    if claims_file_path:
        claims = load_json_from_file(claims_file_path, label="claims")
    else:
        try:
            claims = json.loads(claims_json)
        except json.JSONDecodeError as e:
            click.echo(click.style(f"Error: --claims is not valid JSON: {e}", fg="red"), err=True)
            return None

    if claims is not None and not isinstance(claims, dict):
        click.echo(click.style("Error: Claims must be a JSON object.", fg="red"), err=True)
        return None
    return claims

def save_json(data: Any, output_path: str, success_message_stem: str):
    """Writes `data` as indented JSON and reports where it went."""
    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2)
    click.echo(click.style(f"{success_message_stem} saved to {output_path}", fg="green"))

def build_local_engine(key_dir: Union[str, Path], base_url: str) -> CredentialEngine:
    """Builds an engine over the key pair in `key_dir` with a throwaway in-memory store."""
    key_manager = KeyManager(key_dir)
    key_manager.initialize()
    resolver = DIDResolver(key_manager, base_url)
    return CredentialEngine(key_manager, resolver, CredentialStore.from_url("sqlite://"))
