"""Media pipeline: folders for payment method icons and icon download."""

import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import (
    Media,
    MediaDefaultFolderRepository,
    MediaFolderRepository,
    MediaRepository,
)
from ..exceptions import MediaPipelineFailure

logger = logging.getLogger(__name__)


@dataclass
class DownloadedFile:
    content: bytes
    mime_type: Optional[str] = None
    file_extension: Optional[str] = None


class MediaDownloader(ABC):
    """Fetches a remote file for storage as media."""

    @abstractmethod
    async def download(self, url: str) -> DownloadedFile:
        raise NotImplementedError


class HttpMediaDownloader(MediaDownloader):
    """Downloads media over HTTP with ``httpx``."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def _extension(url: str, mime_type: Optional[str]) -> Optional[str]:
        path = urlparse(url).path
        if "." in path.rsplit("/", 1)[-1]:
            return path.rsplit(".", 1)[-1].lower()
        if mime_type:
            guessed = mimetypes.guess_extension(mime_type)
            if guessed:
                return guessed.lstrip(".")
        return None

    async def download(self, url: str) -> DownloadedFile:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise MediaPipelineFailure(f"Failed to download {url}: {e}") from e

        if response.status_code >= 400:
            raise MediaPipelineFailure(f"Download of {url} returned {response.status_code}")

        mime_type = response.headers.get("content-type", "").split(";")[0].strip() or None
        return DownloadedFile(
            content=response.content,
            mime_type=mime_type,
            file_extension=self._extension(url, mime_type),
        )


class MediaService:
    """Creates media folders and stores media downloaded from a URL."""

    def __init__(self, session: AsyncSession, downloader: Optional[MediaDownloader] = None):
        self.session = session
        self.downloader = downloader or HttpMediaDownloader()
        self.default_folder_repo = MediaDefaultFolderRepository(session)
        self.folder_repo = MediaFolderRepository(session)
        self.media_repo = MediaRepository(session)

    async def upsert_default_folder(self, folder_id: str, entity: str) -> None:
        await self.default_folder_repo.upsert([{
            "id": folder_id,
            "association_fields": [],
            "entity": entity,
        }])

    async def upsert_folder(self, folder_id: str, default_folder_id: str, name: str) -> None:
        await self.folder_repo.upsert([{
            "id": folder_id,
            "default_folder_id": default_folder_id,
            "name": name,
            "use_parent_configuration": False,
            "configuration": {},
        }])

    async def store_from_url(
        self,
        media_id: str,
        title: str,
        url: Optional[str],
        folder_id: str,
    ) -> Media:
        """Download ``url`` and store it as media ``media_id``.

        Raises:
            MediaPipelineFailure: If there is no URL or the download fails.
        """
        if not url:
            raise MediaPipelineFailure(f"No image URL for media {media_id}")

        downloaded = await self.downloader.download(url)
        entities = await self.media_repo.upsert([{
            "id": media_id,
            "title": title,
            "url": url,
            "media_folder_id": folder_id,
            "mime_type": downloaded.mime_type,
            "file_extension": downloaded.file_extension,
            "file_size": len(downloaded.content),
            "content": downloaded.content,
        }])
        logger.debug(f"Stored media {media_id} from {url} ({len(downloaded.content)} bytes)")
        return entities[0]
