#!/usr/bin/env python3
"""GitHub API wrapper for creating, polling and downloading org migrations."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import github
import requests

if TYPE_CHECKING:
    from github.Organization import Organization

from config import GitHubConfig, MigrationOptions
from errors import (AuthenticationError, DownloadError, ExportError,
                    LaunchError, PollError)
from logging_utils import Logger
from utils import RateLimiter

DOWNLOAD_CHUNK_SIZE = 1024 * 1024
REQUEST_TIMEOUT_S = 30
DOWNLOAD_TIMEOUT_S = 300


class MigrationClient:
    """Wrapper around the GitHub organization migrations API."""

    def __init__(self, config: GitHubConfig) -> None:
        self.config = config
        self.api: Optional[github.Github] = None
        self.org: Optional["Organization"] = None
        self.session = requests.Session()
        self.rate_limiter = RateLimiter(
            max_requests_per_minute=50
        )  # GitHub's standard rate limit

    def connect(self) -> None:
        Logger.info(f"init github API: {self.config.api_url}")
        try:
            auth = github.Auth.Token(self.config.token)
            if self.config.api_url != "https://api.github.com":
                self.api = github.Github(base_url=self.config.api_url, auth=auth)
            else:
                self.api = github.Github(auth=auth)
            # Preflight: check org visibility and membership
            self._preflight_org_access()
            self.org = self.api.get_organization(self.config.org)
            Logger.debug(f"github org: {self.org.login}")
        except github.BadCredentialsException as e:
            raise AuthenticationError(
                "authentication failed (github): invalid token"
            ) from e
        except github.GithubException as e:
            raise ExportError(f"github error: {e}") from e

    def _get_api_headers(self) -> dict:
        """Get standard API headers for GitHub requests."""
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.config.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _org_url(self, suffix: str = "") -> str:
        return f"{self.config.api_url}/orgs/{self.config.org}{suffix}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Issue a rate limited API request, tracing it when --debug is on."""
        kwargs.setdefault("timeout", REQUEST_TIMEOUT_S)
        self.rate_limiter.wait_if_needed("GitHub API")
        Logger.debug(f"--> {method} {url}")
        response = self.session.request(
            method, url, headers=self._get_api_headers(), **kwargs
        )
        Logger.debug(f"<-- {response.status_code} {method} {url}")
        return response

    def _check_org_visibility(self) -> None:
        """Check if organization exists and is visible to the token."""
        try:
            r_org = self._request("GET", self._org_url())
        except requests.RequestException as e:
            raise ExportError(f"failed to contact github api: {e}") from e

        if r_org.status_code == 401:
            raise AuthenticationError(
                "unauthorized (401): token invalid or not authorized for GitHub API"
            )
        if r_org.status_code == 403:
            raise AuthenticationError(
                "forbidden (403): token lacks permission to access the organization. "
                "Possible causes: missing read:org scope, "
                "fine-grained token not granted to the org, "
                "or SAML SSO not authorized for this token."
            )
        if r_org.status_code == 404:
            raise ExportError(
                f"not found (404): organization '{self.config.org}' does not "
                "exist or is not visible to this token (not a member)."
            )
        if r_org.status_code != 200:
            Logger.warn(
                f"unexpected response checking org visibility: {r_org.status_code}"
            )

    def _check_org_membership(self) -> None:
        """Check organization membership and role."""
        mem_url = f"{self.config.api_url}/user/memberships/orgs/{self.config.org}"
        try:
            r_mem = self._request("GET", mem_url)
        except requests.RequestException:
            Logger.warn("could not check org membership (request error)")
            return

        if r_mem.status_code != 200:
            Logger.warn(
                f"could not verify org membership ({r_mem.status_code}); "
                "migrations require an organization owner"
            )
            return

        data = r_mem.json()
        state = data.get("state")  # active, pending
        role = data.get("role")  # admin, member
        Logger.info(f"org membership: state={state}, role={role}")
        if state != "active":
            raise AuthenticationError(
                "membership not active for target organization; access will fail"
            )
        if role != "admin":
            Logger.warn(
                "membership role is not admin; creating migrations requires "
                "an organization owner"
            )

    def _preflight_org_access(self) -> None:
        """Check org exists/visible and report membership and role."""
        self._check_org_visibility()
        self._check_org_membership()

    def create_migration(
        self, repositories: List[str], options: MigrationOptions
    ) -> str:
        """Start a migration for ``repositories`` and return its id."""
        payload = options.to_payload(repositories)
        try:
            response = self._request("POST", self._org_url("/migrations"), json=payload)
        except requests.RequestException as e:
            raise LaunchError(f"failed to create migration: {e}") from e

        if response.status_code not in (201, 202):
            raise LaunchError(
                f"failed to create migration for {', '.join(repositories)}: "
                f"{response.status_code} {self._error_message(response)}"
            )
        body = self._json_body(response, LaunchError)
        job_id = body.get("id")
        if job_id is None:
            raise LaunchError("migration response did not include an id")
        return str(job_id)

    def get_migration_state(self, job_id: str) -> str:
        """Return the provider-reported state of migration ``job_id``."""
        try:
            response = self._request("GET", self._org_url(f"/migrations/{job_id}"))
        except requests.RequestException as e:
            raise PollError(f"failed to query migration {job_id}: {e}") from e

        if response.status_code != 200:
            raise PollError(
                f"failed to query migration {job_id}: "
                f"{response.status_code} {self._error_message(response)}"
            )
        body = self._json_body(response, PollError)
        state = body.get("state")
        if not state:
            raise PollError(f"migration {job_id} response did not include a state")
        return str(state)

    def download_archive(self, job_id: str, path: str) -> int:
        """Stream the archive of ``job_id`` into ``path``; returns bytes written.

        Data goes to ``<path>.part`` first and is renamed once complete.
        """
        url = self._org_url(f"/migrations/{job_id}/archive")
        partial = f"{path}.part"
        written = 0
        try:
            # requests drops the Authorization header when redirected off-host
            with self._request(
                "GET", url, stream=True, allow_redirects=True, timeout=DOWNLOAD_TIMEOUT_S
            ) as response:
                if response.status_code != 200:
                    raise DownloadError(
                        f"failed to download archive for migration {job_id}: "
                        f"{response.status_code} {self._error_message(response)}"
                    )
                with open(partial, "wb") as handle:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
                            written += len(chunk)
            os.replace(partial, path)
        except (requests.RequestException, OSError) as e:
            self._remove_partial(partial)
            raise DownloadError(
                f"failed to download archive for migration {job_id}: {e}"
            ) from e
        except DownloadError:
            self._remove_partial(partial)
            raise
        return written

    @staticmethod
    def _remove_partial(path: str) -> None:
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as error:
            Logger.warn(f"failed to clean up partial download {path}: {error}")

    @staticmethod
    def _json_body(response: requests.Response, error_cls: type) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise error_cls(f"malformed response from github: {e}") from e
        if not isinstance(body, dict):
            raise error_cls("malformed response from github: expected an object")
        return body

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason or ""
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.reason or ""
