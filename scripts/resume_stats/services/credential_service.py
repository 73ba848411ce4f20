#------------------------------------------------------------
#                   credential_service.py
#       Loads, prompts for and stores the GitHub PAT in
#                   the OS credential store.

import getpass
import os

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..config import ENV_GITHUB_TOKEN, KEYRING_SERVICE_NAME, TOKEN_PROMPT
from ..errors import CredentialError

EMPTY_TOKEN_MESSAGE = "no GitHub PAT provided"
KEYRING_READ_ERROR_TEMPLATE = "could not read the credential store: {error}"
KEYRING_WRITE_ERROR_TEMPLATE = "could not save the token to the credential store: {error}"
KEYRING_DELETE_ERROR_TEMPLATE = "could not remove the token from the credential store: {error}"


def current_username() -> str:
    return getpass.getuser()


def _prompt_token() -> str:
    try:
        return getpass.getpass(TOKEN_PROMPT).strip()
    except EOFError:
        return ""


# This function does return a usable GitHub token.
# GITHUB_TOKEN wins; otherwise the keyring entry is read, and on a
# miss the user is prompted once and the answer is stored.
def resolve_token() -> str:
    env_token = os.environ.get(ENV_GITHUB_TOKEN, "").strip()
    if env_token:
        return env_token

    username = current_username()
    try:
        token = keyring.get_password(KEYRING_SERVICE_NAME, username)
    except KeyringError as exc:
        raise CredentialError(KEYRING_READ_ERROR_TEMPLATE.format(error=exc)) from exc
    if token:
        return token

    token = _prompt_token()
    if not token:
        raise CredentialError(EMPTY_TOKEN_MESSAGE)

    try:
        keyring.set_password(KEYRING_SERVICE_NAME, username, token)
    except KeyringError as exc:
        raise CredentialError(KEYRING_WRITE_ERROR_TEMPLATE.format(error=exc)) from exc
    return token


# This function does delete the stored token.
# It returns False when nothing was stored.
def forget_token() -> bool:
    try:
        keyring.delete_password(KEYRING_SERVICE_NAME, current_username())
    except PasswordDeleteError:
        return False
    except KeyringError as exc:
        raise CredentialError(KEYRING_DELETE_ERROR_TEMPLATE.format(error=exc)) from exc
    return True
