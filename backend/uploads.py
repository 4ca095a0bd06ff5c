import os
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from uuid import uuid4

import cloudinary
import cloudinary.uploader
from flask import current_app
from werkzeug.utils import secure_filename

from .config import Settings

MAIN_IMAGES = "images"
BLOCK_ICON = "icon"
UNRECOGNIZED = "unrecognized"

# images | content[<i>][icon] | content.<i>.icon
FIELD_GRAMMAR = re.compile(
    r"(?P<images>images)"
    r"|content(?:\[(?P<bracket_index>\d+)\]\[icon\]|\.(?P<dotted_index>\d+)\.icon)"
)


@dataclass(frozen=True)
class UploadSlot:
    field_name: str
    purpose: str
    index: Optional[int] = None


def parse_slot(field_name: str) -> UploadSlot:
    match = FIELD_GRAMMAR.fullmatch(field_name or "")
    if not match:
        return UploadSlot(field_name, UNRECOGNIZED)
    if match.group("images"):
        return UploadSlot(field_name, MAIN_IMAGES)
    index = match.group("bracket_index") or match.group("dotted_index")
    return UploadSlot(field_name, BLOCK_ICON, int(index))


@dataclass
class TempUpload:
    slot: UploadSlot
    path: str
    filename: str


class ImageStoreError(Exception):
    pass


class ImageStore:
    def __init__(self, settings: Settings):
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )

    def upload(self, local_path: str, folder: str) -> str:
        try:
            response = cloudinary.uploader.upload(
                local_path, resource_type="auto", folder=folder
            )
        except Exception as exc:
            current_app.logger.error("Cloudinary upload failed for %s: %s", local_path, exc)
            raise ImageStoreError(f"Cloudinary upload failed: {exc}") from exc

        secure_url = response.get("secure_url") if isinstance(response, dict) else None
        if not secure_url:
            current_app.logger.error("Cloudinary returned no URL for %s: %s", local_path, response)
            raise ImageStoreError("Cloudinary upload returned no URL")
        return secure_url


def remove_temp_file(path: Optional[str]) -> None:
    if not path:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        current_app.logger.warning("Unable to remove temporary upload %s: %s", path, exc)


class UploadBatch:
    """Temporary files received with one request.

    Use as a context manager: every file still on disk is removed when the
    block exits, whether the request succeeded or failed.
    """

    def __init__(self, store: ImageStore, uploads: Iterable[TempUpload]):
        self.store = store
        self.uploads: List[TempUpload] = list(uploads)

    def __enter__(self) -> "UploadBatch":
        return self

    def __exit__(self, exc_type, exc, traceback) -> bool:
        self.discard()
        return False

    def __len__(self) -> int:
        return len(self.uploads)

    def by_purpose(self, purpose: str) -> List[TempUpload]:
        return [upload for upload in self.uploads if upload.slot.purpose == purpose]

    def icons_by_index(self) -> Dict[int, TempUpload]:
        icons: Dict[int, TempUpload] = {}
        for upload in self.by_purpose(BLOCK_ICON):
            icons.setdefault(upload.slot.index, upload)
        return icons

    def _upload(self, upload: TempUpload, folder: str) -> str:
        try:
            return self.store.upload(upload.path, folder)
        finally:
            remove_temp_file(upload.path)

    def upload_images(self, folder: str) -> List[str]:
        return [self._upload(upload, folder) for upload in self.by_purpose(MAIN_IMAGES)]

    def attach_icons(self, blocks: List[Dict], folder: str) -> List[Dict]:
        icons = self.icons_by_index()
        for index, block in enumerate(blocks):
            icon_upload = icons.get(index)
            if icon_upload:
                block["icon"] = self._upload(icon_upload, folder)
        return blocks

    def discard(self) -> None:
        for upload in self.uploads:
            remove_temp_file(upload.path)


class UploadPipeline:
    def __init__(self, settings: Settings, store: ImageStore):
        self.temp_dir = settings.upload_temp_dir
        self.store = store

    def save_temp_file(self, field_name: str, file_storage) -> TempUpload:
        original_filename = secure_filename(file_storage.filename or "") or "upload"
        extension = os.path.splitext(original_filename)[1].lower()
        destination = os.path.join(self.temp_dir, f"{uuid4().hex}{extension}")
        file_storage.save(destination)
        return TempUpload(parse_slot(field_name), destination, original_filename)

    def receive(self, files) -> UploadBatch:
        os.makedirs(self.temp_dir, exist_ok=True)
        received: List[TempUpload] = []
        try:
            for field_name, file_storage in files.items(multi=True):
                if not file_storage or not getattr(file_storage, "filename", ""):
                    continue
                received.append(self.save_temp_file(field_name, file_storage))
        except OSError:
            for upload in received:
                remove_temp_file(upload.path)
            raise
        return UploadBatch(self.store, received)


def get_upload_pipeline() -> UploadPipeline:
    return current_app.extensions["upload_pipeline"]
