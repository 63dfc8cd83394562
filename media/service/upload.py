"""
File host upload.

Large files cannot be sent through a chat, so they are uploaded to Gofile
and the share link is sent instead.
"""

from pathlib import Path

import requests
from django.conf import settings

from media.service.errors import UploadError


def _get_upload_server(timeout):
    response = requests.get(f'{settings.CHATCAST_GOFILE_API}/servers', timeout=timeout)
    response.raise_for_status()
    data = response.json()

    servers = (data.get('data') or {}).get('servers') or []
    if data.get('status') != 'ok' or not servers:
        raise UploadError('Failed to get Gofile server')

    return servers[0]['name']


def upload_to_gofile(file_path, filename=None, logger=None):
    """
    Upload a file to Gofile.

    Args:
        file_path: Local file to upload
        filename: Name shown on the download page (default: the file's name)
        logger: Optional callable(str) for logging

    Returns:
        str: URL of the download page

    Raises:
        UploadError: If any step of the upload fails
    """

    def log(message):
        if logger:
            logger(message)

    file_path = Path(file_path)
    filename = filename or file_path.name
    timeout = settings.CHATCAST_UPLOAD_TIMEOUT

    log(f'Uploading {filename} to Gofile...')

    try:
        server = _get_upload_server(timeout)
        log(f'Using Gofile server: {server}')

        with open(file_path, 'rb') as f:
            response = requests.post(
                f'https://{server}.gofile.io/contents/uploadfile',
                files={'file': (filename, f)},
                timeout=timeout,
            )
        response.raise_for_status()
    except requests.RequestException as e:
        raise UploadError(f'Gofile upload failed: {e}') from e
    except OSError as e:
        raise UploadError(f'Could not read {file_path}: {e}') from e

    try:
        data = response.json()
    except ValueError as e:
        raise UploadError(f'Failed to parse Gofile response: {response.text[:200]}') from e

    if data.get('status') != 'ok':
        raise UploadError(f'Gofile upload failed: {data.get("status")}')

    download_page = (data.get('data') or {}).get('downloadPage')
    if not download_page:
        raise UploadError('Gofile response has no download page')

    log(f'Upload successful: {download_page}')
    return download_page
