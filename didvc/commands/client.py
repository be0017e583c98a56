import json
from typing import Optional

import click
import httpx

from didvc.config import settings
from didvc.utils import load_credential_from_file, parse_claims, save_json

SERVICE_URL_OPTION = click.option(
    "--service-url",
    default=f"http://localhost:{settings.port}",
    show_default=True,
    help="Base URL of a running didvc service.",
)


@click.group("client")
def client():
    """Talk to a running didvc service over HTTP"""
    pass


def _echo_http_error(e: httpx.HTTPStatusError, action: str):
    message = f"Failed to {action}: HTTP {e.response.status_code}."
    try:
        error_detail = e.response.json().get("detail", e.response.text)
        message += f"\nDetails: {error_detail}"
    except json.JSONDecodeError:
        message += f"\nResponse: {e.response.text}"
    click.echo(click.style(message, fg="red"), err=True)


@client.command("issue")
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
    help="Save the issued credential to a file.",
)
@SERVICE_URL_OPTION
def issue_remote(
    credential_type: str,
    claims_json: Optional[str],
    claims_file_path: Optional[str],
    output_path: Optional[str],
    service_url: str,
):
    """Asks the service to issue a credential."""
    claims = parse_claims(claims_json, claims_file_path)
    if claims is None:
        return

    api_endpoint = f"{service_url.rstrip('/')}/credentials/issue"
    try:
        response = httpx.post(api_endpoint, json={"type": credential_type, "claims": claims})
        response.raise_for_status()
        credential_data = response.json()
    except httpx.HTTPStatusError as e:
        _echo_http_error(e, "issue credential")
        return
    except httpx.RequestError as e:
        click.echo(click.style(f"HTTP request error while issuing credential: {e}", fg="red"), err=True)
        return

    click.echo(click.style(f"Issued credential {credential_data.get('id')}", fg="green"))
    if output_path:
        save_json(credential_data, output_path, "Credential")
    else:
        click.echo(json.dumps(credential_data, indent=2))


@client.command("verify")
@click.option(
    "--credential-file",
    "credential_file_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    required=True,
    help="Path to the credential JSON file.",
)
@SERVICE_URL_OPTION
def verify_remote(credential_file_path: str, service_url: str):
    """Asks the service to verify a credential."""
    credential_data = load_credential_from_file(credential_file_path)
    if credential_data is None:
        return

    api_endpoint = f"{service_url.rstrip('/')}/credentials/verify"
    try:
        response = httpx.post(api_endpoint, json={"credential": credential_data})
        response.raise_for_status()
        result = response.json()
    except httpx.HTTPStatusError as e:
        _echo_http_error(e, "verify credential")
        return
    except httpx.RequestError as e:
        click.echo(click.style(f"HTTP request error while verifying credential: {e}", fg="red"), err=True)
        return

    if result.get("valid"):
        click.echo(click.style("Credential is valid.", fg="green"))
    else:
        click.echo(click.style(f"Credential is invalid: {result.get('error')}", fg="red"))


@client.command("list")
@SERVICE_URL_OPTION
def list_remote(service_url: str):
    """Lists the credentials stored by the service."""
    api_endpoint = f"{service_url.rstrip('/')}/credentials"
    try:
        response = httpx.get(api_endpoint)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        _echo_http_error(e, "list credentials")
        return
    except httpx.RequestError as e:
        click.echo(click.style(f"Request error while listing credentials from {api_endpoint}: {e}", fg="red"), err=True)
        return

    credentials = response.json()
    if not credentials:
        click.echo("No credentials stored.")
        return
    for item in credentials:
        click.echo(f"{click.style(item['id'], fg='cyan')}  {item['type']}  {item['issuedAt']}")


@client.command("get")
@click.argument("credential_id")
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    help="Save the fetched credential to a file.",
)
@SERVICE_URL_OPTION
def get_remote(credential_id: str, output_path: Optional[str], service_url: str):
    """Fetches a stored credential by id."""
    api_endpoint = f"{service_url.rstrip('/')}/credentials/{credential_id}"
    try:
        response = httpx.get(api_endpoint)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        _echo_http_error(e, "fetch credential")
        return
    except httpx.RequestError as e:
        click.echo(click.style(f"Request error while fetching credential from {api_endpoint}: {e}", fg="red"), err=True)
        return

    credential_data = response.json()
    if output_path:
        save_json(credential_data, output_path, "Credential")
    else:
        click.echo(json.dumps(credential_data, indent=2))


@client.command("delete")
@click.argument("credential_id")
@SERVICE_URL_OPTION
def delete_remote(credential_id: str, service_url: str):
    """Removes a stored credential by id."""
    api_endpoint = f"{service_url.rstrip('/')}/credentials/{credential_id}"
    try:
        response = httpx.delete(api_endpoint)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        _echo_http_error(e, "delete credential")
        return
    except httpx.RequestError as e:
        click.echo(click.style(f"Request error while deleting credential at {api_endpoint}: {e}", fg="red"), err=True)
        return

    result = response.json()
    color = "green" if result.get("success") else "yellow"
    click.echo(click.style(result.get("message", ""), fg=color))
