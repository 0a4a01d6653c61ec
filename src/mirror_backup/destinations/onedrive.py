"""OneDrive destination: folder creation, name lookup and uploads over Microsoft Graph."""

import logging
import os
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from ..auth.microsoft_auth import MicrosoftGraphAuth
from ..config.settings import BackupConfig
from ..exceptions import FilesystemError, RemoteApiError
from ..models import RemoteEntity, RemoteFile, RemoteFolder

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class OneDriveStorageClient:
    """Thin wrapper around the Graph drive endpoints used by the backup.

    Nothing here retries: any failure surfaces as RemoteApiError (or
    FilesystemError for local read problems) and aborts the caller.
    """

    def __init__(self, auth: MicrosoftGraphAuth, drive_url: str,
                 chunk_size: int = 10 * 1024 * 1024,
                 simple_upload_limit: int = 4 * 1024 * 1024,
                 timeout: int = 300,
                 session: Optional[requests.Session] = None):
        """Initialize the storage client.

        Args:
            auth: Microsoft Graph authentication handler
            drive_url: Base URL of the target drive, e.g. .../v1.0/me/drive
            chunk_size: Bytes per upload session chunk (multiple of 320 KiB)
            simple_upload_limit: Largest file sent with a single PUT
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse
        """
        self.auth = auth
        self.drive_url = drive_url.rstrip('/')
        self.chunk_size = chunk_size
        self.simple_upload_limit = simple_upload_limit
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, auth: MicrosoftGraphAuth, config: BackupConfig) -> "OneDriveStorageClient":
        return cls(
            auth,
            config.drive_url,
            chunk_size=config.chunk_size,
            simple_upload_limit=config.simple_upload_limit,
            timeout=config.request_timeout,
        )

    def close(self) -> None:
        """Release the HTTP session unless it was supplied by the caller."""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _item_url(self, item_id: Optional[str]) -> str:
        if item_id is None:
            return f"{self.drive_url}/root"
        return f"{self.drive_url}/items/{item_id}"

    def _child_url(self, parent_id: Optional[str], name: str) -> str:
        """Path-relative address of a named child of parent_id."""
        return f"{self._item_url(parent_id)}:/{quote(name, safe='')}"

    def _request(self, method: str, url: str, authenticated: bool = True,
                 allow_not_found: bool = False, **kwargs) -> Optional[Dict[str, Any]]:
        """Send a request and return the decoded JSON body.

        Returns None for 404 when allow_not_found is set, and an empty dict
        for successful responses without a body.
        """
        headers = dict(kwargs.pop('headers', None) or {})
        if authenticated:
            headers.update(self.auth.get_auth_headers())

        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RemoteApiError(f"{method} {url} failed: {e}") from e

        if allow_not_found and response.status_code == 404:
            return None

        if not 200 <= response.status_code < 300:
            raise RemoteApiError(
                f"{method} {url} returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise RemoteApiError(f"Malformed response from {url}: {e}", status_code=response.status_code) from e

    def create_folder(self, name: str, parent_id: Optional[str] = None) -> RemoteFolder:
        """Create a new folder under parent_id, or under the drive root when None.

        Creating the same name twice produces two folders; Graph renames the
        second one.
        """
        data = self._request(
            'POST',
            f"{self._item_url(parent_id)}/children",
            json={
                "name": name,
                "folder": {},
                "@microsoft.graph.conflictBehavior": "rename",
            },
        )
        folder = RemoteFolder(name=data.get('name', name), remote_id=_require_id(data), parent_id=parent_id)
        logger.debug(f"Created folder {folder.name} ({folder.remote_id}) under {parent_id or 'root'}")
        return folder

    def search_by_name(self, name: str) -> List[RemoteEntity]:
        """Find every folder or file in the drive whose name equals name exactly.

        Graph search is fuzzy, so hits are filtered by name here. Results from
        every page are collected. Deleted items and items shared from other
        drives are skipped.
        """
        escaped = quote(name.replace("'", "''"), safe='')
        url = f"{self.drive_url}/root/search(q='{escaped}')"

        matches = []
        while url:
            data = self._request('GET', url)
            for item in data.get('value', []):
                if item.get('name') != name or 'deleted' in item or 'remoteItem' in item:
                    continue
                matches.append(_to_entity(item))
            url = data.get('@odata.nextLink')

        logger.debug(f"Search for {name!r} matched {len(matches)} item(s)")
        return matches

    def find_child(self, parent_id: Optional[str], name: str) -> Optional[RemoteEntity]:
        """Look up a child by exact name inside one folder."""
        data = self._request('GET', self._child_url(parent_id, name), allow_not_found=True)
        if data is None:
            return None
        return _to_entity(data)

    def upload_file(self, local_path: str, file_name: str, parent_id: Optional[str] = None,
                    progress_callback: Optional[ProgressCallback] = None) -> RemoteFile:
        """Upload local_path as a new file named file_name under parent_id.

        progress_callback receives the percentage of bytes read so far. It is
        informational only; errors raised by it are logged and ignored.

        Raises:
            FilesystemError: If the local file cannot be read
            RemoteApiError: If any request fails
        """
        try:
            file_size = os.path.getsize(local_path)
            handle = open(local_path, 'rb')
        except OSError as e:
            raise FilesystemError(f"Cannot open {local_path}: {e}", path=local_path) from e

        with handle:
            if file_size <= self.simple_upload_limit:
                item = self._simple_upload(handle, local_path, file_name, parent_id, file_size, progress_callback)
            else:
                item = self._session_upload(handle, local_path, file_name, parent_id, file_size, progress_callback)

        return RemoteFile(
            name=item.get('name', file_name),
            remote_id=_require_id(item),
            parent_id=parent_id,
            size=item.get('size', file_size),
        )

    def _simple_upload(self, handle, local_path, file_name, parent_id, file_size, progress_callback):
        content = _read(handle, file_size, local_path)
        _report_progress(progress_callback, len(content), file_size)
        return self._request(
            'PUT',
            f"{self._child_url(parent_id, file_name)}:/content",
            params={"@microsoft.graph.conflictBehavior": "rename"},
            headers={"Content-Type": "application/octet-stream"},
            data=content,
        )

    def _session_upload(self, handle, local_path, file_name, parent_id, file_size, progress_callback):
        session = self._request(
            'POST',
            f"{self._child_url(parent_id, file_name)}:/createUploadSession",
            json={"item": {"@microsoft.graph.conflictBehavior": "rename", "name": file_name}},
        )
        upload_url = session.get('uploadUrl')
        if not upload_url:
            raise RemoteApiError(f"Upload session for {file_name} has no uploadUrl")

        offset = 0
        item: Dict[str, Any] = {}
        while offset < file_size:
            chunk = _read(handle, min(self.chunk_size, file_size - offset), local_path)
            chunk_end = offset + len(chunk) - 1
            _report_progress(progress_callback, offset + len(chunk), file_size)

            # The upload URL is pre-authenticated; Graph rejects a bearer token on it
            item = self._request(
                'PUT',
                upload_url,
                authenticated=False,
                headers={
                    "Content-Length": str(len(chunk)),
                    "Content-Range": f"bytes {offset}-{chunk_end}/{file_size}",
                },
                data=chunk,
            )
            offset = chunk_end + 1

        if 'id' not in item:
            raise RemoteApiError(f"Upload session for {file_name} ended without a completed item")
        return item


def _read(handle, size: int, local_path: str) -> bytes:
    try:
        data = handle.read(size)
    except OSError as e:
        raise FilesystemError(f"Cannot read {local_path}: {e}", path=local_path) from e
    if len(data) != size:
        raise FilesystemError(f"{local_path} changed size during upload", path=local_path)
    return data


def _report_progress(callback: Optional[ProgressCallback], bytes_read: int, total: int) -> None:
    if callback is None:
        return
    percent = 100.0 if total == 0 else bytes_read * 100.0 / total
    try:
        callback(percent)
    except Exception as e:
        logger.warning(f"Progress callback failed: {e}")


def _to_entity(item: Dict[str, Any]) -> RemoteEntity:
    return RemoteEntity(
        remote_id=_require_id(item),
        name=item.get('name', ''),
        is_folder='folder' in item,
        parent_id=(item.get('parentReference') or {}).get('id'),
    )


def _require_id(item: Dict[str, Any]) -> str:
    try:
        return item['id']
    except (KeyError, TypeError) as e:
        raise RemoteApiError(f"Response item has no id: {item!r}") from e


def _error_message(response: requests.Response) -> str:
    """Extract the Graph error message, falling back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    error = body.get('error') if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get('message'):
        return f"{error.get('code', 'error')}: {error['message']}"
    return response.text[:300]
