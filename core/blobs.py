# =============================================================================
# core/blobs.py  —  Blob Text Retrieval (Azure Blob Storage)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Downloads a whole blob into memory and decodes it as text so the agent
#   can feed it straight into analyze_compliance.
#
# ENCODING POLICY (deliberate fail-open):
#   "ascii" (any case) decodes as ASCII.  Everything else — "utf8",
#   "UTF-8", None, or a name we've never heard of — decodes as UTF-8.
#   An unknown encoding name must NOT abort the call.
#   Undecodable bytes never raise: UTF-8 turns them into U+FFFD, ASCII
#   turns every non-ASCII byte into "?".
# =============================================================================

import logging
from typing import Optional

from azure.storage.blob.aio import BlobServiceClient

from core.errors import InvalidArgument, azure_errors

logger = logging.getLogger(__name__)


def resolve_encoding(name: Optional[str]) -> str:
    """Map a caller-supplied encoding name to a Python codec name."""
    if name is not None and name.strip().lower() == "ascii":
        return "ascii"
    return "utf-8"


def decode_blob(data: bytes, encoding: Optional[str] = "utf8") -> str:
    codec = resolve_encoding(encoding)
    text = data.decode(codec, errors="replace")
    if codec == "ascii":
        return text.replace("\ufffd", "?")
    return text


class BlobTextFetcher:
    def __init__(self, service: BlobServiceClient) -> None:
        self._service = service

    async def fetch(
        self, container_name: str, blob_name: str, encoding: Optional[str] = "utf8"
    ) -> str:
        """Download `container_name/blob_name` and return it as text."""
        if not container_name or not container_name.strip():
            raise InvalidArgument("container_name must not be empty")
        if not blob_name or not blob_name.strip():
            raise InvalidArgument("blob_name must not be empty")

        blob = self._service.get_blob_client(container=container_name, blob=blob_name)
        with azure_errors(f"download of {container_name}/{blob_name}"):
            downloader = await blob.download_blob()
            data = await downloader.readall()

        logger.debug("downloaded %d bytes from %s/%s", len(data), container_name, blob_name)
        return decode_blob(data, encoding)
