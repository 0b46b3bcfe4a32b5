"""GitHub SSH key registration."""

from datetime import date
from enum import Enum
from pathlib import Path

import httpx

from nodeinit.core.config import DEFAULT_API_URL
from nodeinit.core.environment import get_hostname
from nodeinit.core.errors import AuthRejected, RegistrationError
from nodeinit.core.keys import key_body, read_public_key
from nodeinit.utils.output import error, info, ok, warn

KEY_TITLE_SUFFIX = "auto"
ACCEPT_HEADER = "application/vnd.github+json"


class RegistrationResult(Enum):
    """Outcome of a key upload."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    AUTH_REJECTED = "auth_rejected"
    OTHER_ERROR = "other_error"


def classify_status(status_code: int) -> RegistrationResult:
    """Map an HTTP status from POST /user/keys to a result."""
    if status_code == 201:
        return RegistrationResult.CREATED
    if status_code == 401:
        return RegistrationResult.AUTH_REJECTED
    if status_code == 422:
        return RegistrationResult.ALREADY_EXISTS
    return RegistrationResult.OTHER_ERROR


def build_key_title(hostname: str | None = None, today: date | None = None) -> str:
    """Title that marks the key as an automated registration from this node."""
    hostname = hostname or get_hostname()
    today = today or date.today()
    return f"{hostname}-{today:%Y-%m-%d}-{KEY_TITLE_SUFFIX}"


def _headers(token: str) -> dict[str, str]:
    return {
        "Accept": ACCEPT_HEADER,
        "Authorization": f"Bearer {token}",
    }


def list_account_keys(client: httpx.Client, api_url: str, token: str) -> list[str]:
    """Return the public keys registered on the token's account."""
    resp = client.get(f"{api_url}/user/keys", headers=_headers(token), params={"per_page": 100})
    resp.raise_for_status()
    return [entry.get("key", "") for entry in resp.json() if isinstance(entry, dict)]


def confirm_registered(client: httpx.Client, api_url: str, token: str, public_key: str) -> bool | None:
    """Check whether public_key is among the account's keys.

    Returns None if the lookup itself failed.
    """
    try:
        keys = list_account_keys(client, api_url, token)
    except (httpx.HTTPError, ValueError):
        return None
    wanted = key_body(public_key)
    return any(key_body(k) == wanted for k in keys)


def register_key(
    public_key_path: Path,
    token: str,
    *,
    api_url: str = DEFAULT_API_URL,
    timeout: float = 30.0,
    title: str | None = None,
    client: httpx.Client | None = None,
) -> RegistrationResult:
    """Upload a public key to the account behind token.

    A 422 response is treated as "already registered" so repeat runs on a
    node with a stable key keep going.

    Args:
        public_key_path: Path to the .pub file
        token: Bearer token with key write access
        api_url: API base URL
        timeout: Request timeout in seconds
        title: Key title, defaults to build_key_title()
        client: Optional httpx client (used as-is, not closed)

    Returns:
        CREATED or ALREADY_EXISTS.

    Raises:
        KeyReadError: If the public key file is missing.
        AuthRejected: On HTTP 401.
        RegistrationError: On any other failure.
    """
    public_key = read_public_key(public_key_path)
    title = title or build_key_title()

    info("Uploading SSH key to GitHub")
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=timeout)

    try:
        try:
            resp = client.post(
                f"{api_url}/user/keys",
                headers=_headers(token),
                json={"title": title, "key": public_key},
            )
        except httpx.RequestError as e:
            error(f"Request to {api_url} failed: {e}")
            raise RegistrationError(f"Request to {api_url} failed: {e}") from e

        result = classify_status(resp.status_code)

        if result is RegistrationResult.CREATED:
            ok("SSH key uploaded to GitHub successfully")
        elif result is RegistrationResult.AUTH_REJECTED:
            error("Authentication Error (401): Bad credentials")
            error("GitHub token was rejected. Please check your token.")
            raise AuthRejected("GitHub rejected the access token (401 bad credentials)")
        elif result is RegistrationResult.ALREADY_EXISTS:
            warn("Key may already exist on GitHub (422 response)")
            confirmed = confirm_registered(client, api_url, token, public_key)
            if confirmed:
                ok("Key is registered on the account")
            elif confirmed is None:
                warn("Could not list account keys to confirm registration")
            else:
                warn(f"Key not found among account keys: {resp.text}")
        else:
            error(f"Error uploading key (HTTP {resp.status_code}): {resp.text}")
            raise RegistrationError(f"Key upload failed with HTTP {resp.status_code}: {resp.text}")
    finally:
        if owns_client:
            client.close()

    return result
