"""Client for the hosted auth provider (GoTrue-style password endpoints)."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app


class AuthProviderError(Exception):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class AuthProviderClient:
    def __init__(self, base_url: str, api_key: str, timeout: int = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {"apikey": api_key, "Accept": "application/json"}
        )

    def _post(self, path: str, payload: Dict[str, Any] | None = None,
              params: Dict[str, Any] | None = None,
              token: Optional[str] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            r = self.session.post(url, json=payload, params=params,
                                  headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logging.warning("auth provider network error: %s", e)
            raise AuthProviderError("Auth service unavailable") from e
        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {}
            msg = (body.get("error_description") or body.get("msg")
                   or body.get("message") or f"Auth error ({r.status_code})")
            logging.info("auth provider %s -> %s: %s", path, r.status_code, msg)
            raise AuthProviderError(msg, r.status_code)
        if not r.content:
            return {}
        return r.json()

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Return ``{'access_token': ..., 'user': {...}}`` for valid credentials."""
        return self._post(
            "/token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )

    def sign_up(self, email: str, password: str, name: str) -> Dict[str, Any]:
        data = self._post(
            "/signup",
            {"email": email, "password": password, "data": {"name": name}},
        )
        # Depending on email confirmation settings the user is either the
        # payload itself or nested beside a session.
        if "user" not in data and data.get("id"):
            data = {"user": data}
        return data

    def sign_out(self, access_token: str) -> None:
        self._post("/logout", token=access_token)


def get_client() -> AuthProviderClient:
    cfg = current_app.config
    return AuthProviderClient(
        cfg["AUTH_PROVIDER_URL"],
        cfg["AUTH_PROVIDER_KEY"],
        timeout=cfg["AUTH_PROVIDER_TIMEOUT"],
    )
