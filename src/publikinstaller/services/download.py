"""Download service for the pip bootstrap script."""

import os
from typing import Dict, Optional

import requests

from publikinstaller.errors import InstallerError
from publikinstaller.errors_catalog import actionable_error
from publikinstaller.services.progress import ProgressState


class DownloadService:
    """Streams a remote file to disk behind a dialog gauge."""

    def __init__(self, logger, dialog, requests_module=requests, timeout: float = 60.0):
        self.logger = logger
        self.dialog = dialog
        self.requests = requests_module
        self.timeout = timeout

    def download_file(
        self,
        url: str,
        dest_path: str,
        description: str = "Downloading...",
        proxies: Optional[Dict[str, Optional[str]]] = None,
    ):
        self.logger.info("Downloading %s to %s", url, dest_path)
        state = ProgressState()

        try:
            with self.requests.get(
                url,
                stream=True,
                timeout=self.timeout,
                proxies=proxies,
            ) as response:
                response.raise_for_status()
                total_size = int(response.headers.get("Content-Length", 0))
                received = 0

                os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)

                with self.dialog.gauge(description) as gauge:
                    with open(dest_path, "wb") as file_obj:
                        for chunk in response.iter_content(chunk_size=8192):
                            if not chunk:
                                continue
                            file_obj.write(chunk)
                            received += len(chunk)
                            if total_size:
                                gauge.update(state.advance(100 * received // total_size))
                    if state.value < 100:
                        gauge.update(state.finish())

        except self.requests.RequestException as exc:
            raise InstallerError(
                actionable_error("download_failed", url=url, reason=str(exc))
            ) from exc
