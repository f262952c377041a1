"""
Azure Repos API Client - Low-level HTTP client for the Azure DevOps Git REST API.

This handles the raw HTTP communication with Azure DevOps.
The AzureReposClient uses this to implement the VcsClientPort.

Every HTTP exchange runs on a worker thread while the calling thread waits
on the CallContext, so canceling the context hands control back to the
caller immediately. Failures are classified into the vcsbridge exception
taxonomy here; no requests exception escapes this module.

Azure DevOps REST API documentation:
https://learn.microsoft.com/en-us/rest/api/azure/devops/git/
"""

import base64
from collections.abc import Iterator
from concurrent import futures
from http.cookiejar import DefaultCookiePolicy
from typing import Any, BinaryIO
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from vcsbridge.core.context import CallContext
from vcsbridge.core.exceptions import (
    AuthenticationError,
    CanceledError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    TransientError,
    ValidationError,
)
from vcsbridge.core.log import SafeLogger


def get_retry_after(response: requests.Response) -> float | None:
    """Read the Retry-After header in seconds, if present and numeric."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return None


def _close_late_response(future: futures.Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class AzureReposApiClient:
    """
    Low-level Azure DevOps Git REST API client.

    Handles authentication, request/response, cancellation and error
    classification.

    Features:
    - Personal Access Token authentication
    - Cancellation and deadlines via CallContext
    - Transparent $top/$skip pagination
    - Streamed archive download
    - Connection pooling; cookies are never stored, so the session carries
      no per-caller state
    """

    API_VERSION = "6.0"
    PROVIDER_NAME = "Azure Repos"

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_PAGE_SIZE = 100
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    # Connection pool settings
    DEFAULT_POOL_CONNECTIONS = 10
    DEFAULT_POOL_MAXSIZE = 10

    # How often a waiting caller checks its context
    POLL_INTERVAL = 0.05

    def __init__(
        self,
        base_url: str,
        token: str,
        project: str,
        timeout: float = DEFAULT_TIMEOUT,
        logger: Any | None = None,
    ):
        """
        Initialize the client. Performs no network I/O.

        Args:
            base_url: Organization URL (e.g., https://dev.azure.com/my-org)
            token: Personal Access Token
            project: Default project for Git endpoints
            timeout: Per-request timeout in seconds, further bounded by the
                context deadline
            logger: Optional logger collaborator
        """
        self.base_url = base_url.rstrip("/")
        self.project = project
        self.timeout = timeout
        self.logger = SafeLogger(logger, name="AzureReposApiClient")

        credentials = base64.b64encode(f":{token}".encode()).decode("ascii")
        self.authorization = f"Basic {credentials}"

        self.headers = {
            "Accept": "application/json",
            "Authorization": self.authorization,
        }

        self._session = requests.Session()
        self._session.headers.update(self.headers)
        self._session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

        adapter = HTTPAdapter(
            pool_connections=self.DEFAULT_POOL_CONNECTIONS,
            pool_maxsize=self.DEFAULT_POOL_MAXSIZE,
        )
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

        self._executor = futures.ThreadPoolExecutor(
            max_workers=self.DEFAULT_POOL_MAXSIZE,
            thread_name_prefix="azure-repos",
        )

    # -------------------------------------------------------------------------
    # URL Building
    # -------------------------------------------------------------------------

    def _build_url(
        self, endpoint: str, area: str | None = "git", project: str | None = None
    ) -> str:
        """
        Build a full API URL.

        Args:
            endpoint: Path below the area (e.g., 'repositories')
            area: API area; 'git' is project scoped, None is organization level
            project: Project overriding the default one
        """
        if endpoint.startswith("http"):
            return endpoint

        endpoint = endpoint.lstrip("/")
        if area is None:
            return f"{self.base_url}/_apis/{endpoint}"

        project_segment = quote(project or self.project, safe="")
        return f"{self.base_url}/{project_segment}/_apis/{area}/{endpoint}"

    @staticmethod
    def _repository_path(repository: str, suffix: str = "") -> str:
        path = f"repositories/{quote(repository, safe='')}"
        return f"{path}/{suffix}" if suffix else path

    # -------------------------------------------------------------------------
    # Core Request Methods
    # -------------------------------------------------------------------------

    def _timeout_for(self, ctx: CallContext) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        if remaining <= 0:
            raise CanceledError("deadline exceeded")
        return min(self.timeout, remaining)

    def _await(self, ctx: CallContext, future: futures.Future) -> requests.Response:
        """Wait for a submitted exchange, giving up as soon as ctx is done."""
        while True:
            done, _ = futures.wait([future], timeout=self.POLL_INTERVAL)
            if done:
                return future.result()
            if ctx.cancelled:
                future.add_done_callback(_close_late_response)
                ctx.raise_if_cancelled()

    def send(
        self,
        ctx: CallContext,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        stream: bool = False,
    ) -> requests.Response:
        """
        Perform one HTTP exchange and classify the outcome.

        Returns:
            The successful response (caller closes it when streaming)

        Raises:
            VcsError subclass: On any failure
        """
        ctx.raise_if_cancelled()

        query: dict[str, Any] = {"api-version": self.API_VERSION}
        if params:
            query.update(params)

        future = self._executor.submit(
            self._session.request,
            method,
            url,
            params=query,
            json=json,
            headers=headers,
            timeout=self._timeout_for(ctx),
            stream=stream,
        )

        try:
            response = self._await(ctx, future)
        except requests.exceptions.Timeout as e:
            if ctx.cancelled:
                raise CanceledError("deadline exceeded", cause=e) from e
            raise TransientError(f"Request to {url} timed out", cause=e) from e
        except requests.exceptions.ConnectionError as e:
            raise ConnectionError(f"Could not connect to {self.base_url}", cause=e) from e
        except requests.exceptions.RequestException as e:
            raise TransientError(f"Request to {url} failed", cause=e) from e

        try:
            self._raise_for_status(response, url)
        except Exception:
            response.close()
            raise
        return response

    def request(
        self,
        ctx: CallContext,
        method: str,
        endpoint: str,
        *,
        area: str | None = "git",
        project: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """
        Make an authenticated JSON request to the Azure DevOps API.

        Args:
            ctx: Call context
            method: HTTP method
            endpoint: API endpoint (e.g., 'repositories')
            area: API area (see _build_url)
            project: Project overriding the default one
            **kwargs: params / json / headers for send()

        Returns:
            JSON response (dict or list)
        """
        url = self._build_url(endpoint, area=area, project=project)
        response = self.send(ctx, method, url, **kwargs)
        return self._parse_json(response, url)

    def get(self, ctx: CallContext, endpoint: str, **kwargs: Any) -> dict[str, Any] | list[Any]:
        """Perform a GET request."""
        return self.request(ctx, "GET", endpoint, **kwargs)

    def post(
        self,
        ctx: CallContext,
        endpoint: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any] | list[Any]:
        """Perform a POST request."""
        return self.request(ctx, "POST", endpoint, json=json, **kwargs)

    def get_paged(
        self,
        ctx: CallContext,
        endpoint: str,
        params: dict[str, Any] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Iterator[dict[str, Any]]:
        """
        Iterate over every item of a $top/$skip paged collection.

        Stops at the first page shorter than ``page_size``.
        """
        skip = 0
        while True:
            page_params = dict(params or {})
            page_params["$top"] = page_size
            page_params["$skip"] = skip

            result = self.get(ctx, endpoint, params=page_params)
            items = self._values(result)
            yield from items

            if len(items) < page_size:
                return
            skip += len(items)

    # -------------------------------------------------------------------------
    # Response Handling
    # -------------------------------------------------------------------------

    def _raise_for_status(self, response: requests.Response, endpoint: str) -> None:
        """Convert error statuses to typed exceptions."""
        status = response.status_code

        # Azure DevOps answers a rejected PAT with 203 and an HTML sign-in page
        if status == 203:
            raise AuthenticationError(
                "Azure DevOps authentication failed (sign-in page returned). "
                "Check your personal access token."
            )

        if 200 <= status < 300:
            return

        message = self._error_message(response)

        if status in (401, 403):
            raise AuthenticationError(f"Azure DevOps rejected the credential ({status}): {message}")

        if status == 404:
            raise NotFoundError(f"Not found: {message}", resource=endpoint)

        if status == 429:
            raise RateLimitError(
                f"Azure DevOps rate limit exceeded for {endpoint}",
                retry_after=get_retry_after(response),
            )

        if 400 <= status < 500:
            raise ValidationError(f"Azure DevOps rejected the request ({status}): {message}")

        raise TransientError(
            f"Azure DevOps API error {status}: {message}",
            retry_after=get_retry_after(response),
        )

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text[:500] if response.text else response.reason or ""

    @staticmethod
    def _parse_json(response: requests.Response, endpoint: str) -> dict[str, Any] | list[Any]:
        if not response.text:
            return {}
        try:
            json_data = response.json()
        except ValueError as e:
            raise TransientError(f"Invalid JSON in response from {endpoint}", cause=e) from e
        if isinstance(json_data, (dict, list)):
            return json_data
        return {}

    @staticmethod
    def _values(result: dict[str, Any] | list[Any]) -> list[dict[str, Any]]:
        """Unwrap the {'count': n, 'value': [...]} collection envelope."""
        if isinstance(result, list):
            return result
        values = result.get("value", [])
        return values if isinstance(values, list) else []

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    def get_resource_areas(self, ctx: CallContext) -> list[dict[str, Any]]:
        """Get the organization's resource areas (a cheap authenticated call)."""
        return self._values(self.get(ctx, "ResourceAreas", area=None))

    # -------------------------------------------------------------------------
    # Repositories API
    # -------------------------------------------------------------------------

    def get_repositories(
        self, ctx: CallContext, project: str | None = None
    ) -> list[dict[str, Any]]:
        """List repositories of a project."""
        return self._values(self.get(ctx, "repositories", project=project))

    def get_branch_stats(self, ctx: CallContext, repository: str) -> list[dict[str, Any]]:
        """List branches (with ahead/behind statistics) of a repository."""
        return self._values(self.get(ctx, self._repository_path(repository, "stats/branches")))

    def get_commits(
        self,
        ctx: CallContext,
        repository: str,
        branch: str,
        top: int = 1,
    ) -> list[dict[str, Any]]:
        """
        List commits reachable from a branch, newest first.

        Args:
            repository: Repository name or ID
            branch: Short branch name
            top: Maximum number of commits
        """
        params = {
            "searchCriteria.itemVersion.version": branch,
            "searchCriteria.itemVersion.versionType": "branch",
            "searchCriteria.$top": top,
        }
        return self._values(
            self.get(ctx, self._repository_path(repository, "commits"), params=params)
        )

    def download_archive(
        self,
        ctx: CallContext,
        repository: str,
        branch: str,
        destination: BinaryIO,
    ) -> int:
        """
        Stream a ZIP snapshot of a branch into ``destination``.

        Canceling ``ctx`` closes the response and aborts the transfer.

        Returns:
            Number of bytes written
        """
        url = self._build_url(self._repository_path(repository, "items/items"))
        params = {
            "path": "/",
            "versionDescriptor[version]": branch,
            "$format": "zip",
        }
        headers = {
            "Accept": "application/zip",
            "download": "true",
            "resolveLfs": "true",
        }
        self.logger.debug(f"download url: {url}")

        response = self.send(ctx, "GET", url, params=params, headers=headers, stream=True)
        unregister = ctx.on_cancel(response.close)
        written = 0
        try:
            for chunk in response.iter_content(chunk_size=self.DOWNLOAD_CHUNK_SIZE):
                ctx.raise_if_cancelled()
                if chunk:
                    destination.write(chunk)
                    written += len(chunk)
            # A closed response ends iteration without raising
            ctx.raise_if_cancelled()
        except (requests.exceptions.RequestException, OSError, ValueError) as e:
            if ctx.cancelled:
                raise CanceledError("download canceled", cause=e) from e
            raise TransientError(f"Download of {repository} interrupted", cause=e) from e
        finally:
            unregister()
            response.close()

        self.logger.info(
            f"{repository} downloaded successfully, starting with repository extraction"
        )
        return written

    # -------------------------------------------------------------------------
    # Pull Requests API
    # -------------------------------------------------------------------------

    def create_pull_request(
        self,
        ctx: CallContext,
        repository: str,
        source_ref: str,
        target_ref: str,
        title: str,
        description: str,
    ) -> dict[str, Any]:
        """
        Create a pull request.

        Args:
            source_ref: Full source ref (refs/heads/...)
            target_ref: Full target ref (refs/heads/...)
        """
        data = {
            "sourceRefName": source_ref,
            "targetRefName": target_ref,
            "title": title,
            "description": description,
        }
        result = self.post(ctx, self._repository_path(repository, "pullrequests"), json=data)
        return result if isinstance(result, dict) else {}

    def get_pull_requests(
        self,
        ctx: CallContext,
        repository: str,
        status: str = "active",
    ) -> list[dict[str, Any]]:
        """List every pull request with the given status, across all pages."""
        params = {"searchCriteria.status": status}
        return list(
            self.get_paged(ctx, self._repository_path(repository, "pullrequests"), params=params)
        )

    def create_thread(
        self,
        ctx: CallContext,
        repository: str,
        pull_request_id: int,
        content: str,
    ) -> dict[str, Any]:
        """Open a new active comment thread holding a single comment."""
        data = {
            "comments": [{"content": content, "commentType": "text"}],
            "status": "active",
        }
        result = self.post(
            ctx,
            self._repository_path(repository, f"pullRequests/{pull_request_id}/threads"),
            json=data,
        )
        return result if isinstance(result, dict) else {}

    def get_threads(
        self, ctx: CallContext, repository: str, pull_request_id: int
    ) -> list[dict[str, Any]]:
        """List comment threads of a pull request."""
        return self._values(
            self.get(
                ctx, self._repository_path(repository, f"pullRequests/{pull_request_id}/threads")
            )
        )

    # -------------------------------------------------------------------------
    # Resource Cleanup
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close the client and release pooled connections and worker threads."""
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._session.close()
        self.logger.debug("Closed HTTP session")

    def __enter__(self) -> "AzureReposApiClient":
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        self.close()
