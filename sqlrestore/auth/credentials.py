from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, MutableMapping, Optional, Sequence

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as AuthRequest

from sqlrestore.config import AUTH_SCOPES, CREDENTIALS_ENV_VAR
from sqlrestore.errors import CredentialError


class GoogleTokenProvider:
    """Fournit un access token via les Application Default Credentials.

    Les identifiants sont résolus une fois puis rafraîchis uniquement à expiration.
    """

    def __init__(self, scopes: Sequence[str] = AUTH_SCOPES) -> None:
        self.scopes = list(scopes)
        self._credentials = None
        self._request = AuthRequest()

    def get_token(self) -> str:
        try:
            if self._credentials is None:
                self._credentials, _project = google.auth.default(scopes=self.scopes)
            if not self._credentials.valid:
                self._credentials.refresh(self._request)
        except GoogleAuthError as exc:
            raise CredentialError(f"Impossible d'obtenir un token Google: {exc}") from exc

        token = self._credentials.token
        if not token:
            raise CredentialError("Token Google vide après rafraîchissement")
        return token


@contextmanager
def credential_context(
    private_key: str,
    path: Path,
    environ: MutableMapping[str, str] | None = None,
) -> Iterator[GoogleTokenProvider]:
    """Dépose la clé de compte de service et expose un fournisseur de token.

    Le fichier et la variable GOOGLE_APPLICATION_CREDENTIALS n'existent que le
    temps du bloc ; la valeur précédente de la variable est restaurée en sortie.

    Raises:
        CredentialError: si la clé est vide ou ne peut pas être écrite.
    """

    env = environ if environ is not None else os.environ
    if not private_key or not private_key.strip():
        raise CredentialError("source.private_key est vide")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(private_key, encoding="utf-8")
        path.chmod(0o600)
    except OSError as exc:
        raise CredentialError(f"Impossible d'écrire les identifiants dans {path}: {exc}") from exc

    previous: Optional[str] = env.get(CREDENTIALS_ENV_VAR)
    env[CREDENTIALS_ENV_VAR] = str(path)
    try:
        yield GoogleTokenProvider()
    finally:
        _restore_env(env, previous)
        path.unlink(missing_ok=True)


def _restore_env(env: MutableMapping[str, str], previous: Optional[str]) -> None:
    if previous is None:
        env.pop(CREDENTIALS_ENV_VAR, None)
    else:
        env[CREDENTIALS_ENV_VAR] = previous

