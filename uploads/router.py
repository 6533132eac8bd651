"""Admin media upload endpoints."""

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile

from admin.auth import require_admin
from core.dependencies import get_upload_storage
from core.exceptions import CatalogServiceError, UploadRejectedError
from core.responses import envelope, server_error
from uploads.storage import UploadStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"], dependencies=[Depends(require_admin)])

UPLOAD_RESPONSES = {
    200: {"description": "Files stored"},
    400: {"description": "Missing file, invalid type, too large or too many files"},
    401: {"description": "Missing or invalid admin token"},
}


@router.post("/audio", summary="Upload audio files", responses=UPLOAD_RESPONSES)
async def upload_audio(
    audio: list[UploadFile] | None = File(None),
    storage: UploadStorage = Depends(get_upload_storage),
):
    if not audio:
        raise UploadRejectedError("No audio files uploaded")
    try:
        stored = await storage.save_all([("audio", f) for f in audio])
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to upload audio files", e) from e

    return envelope(
        data=[item.to_dict() for item in stored],
        message=f"Successfully uploaded {len(stored)} audio file(s)",
    )


@router.post("/artwork", summary="Upload release artwork", responses=UPLOAD_RESPONSES)
async def upload_artwork(
    artwork: UploadFile | None = File(None),
    storage: UploadStorage = Depends(get_upload_storage),
):
    if artwork is None:
        raise UploadRejectedError("No artwork file uploaded")
    try:
        (stored,) = await storage.save_all([("artwork", artwork)])
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to upload artwork", e) from e

    return envelope(data=stored.to_dict(), message="Artwork uploaded successfully")


@router.post("/profile", summary="Upload an artist profile image", responses=UPLOAD_RESPONSES)
async def upload_profile(
    profile_image: UploadFile | None = File(None, alias="profileImage"),
    storage: UploadStorage = Depends(get_upload_storage),
):
    if profile_image is None:
        raise UploadRejectedError("No profile image uploaded")
    try:
        (stored,) = await storage.save_all([("profileImage", profile_image)])
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to upload profile image", e) from e

    return envelope(data=stored.to_dict(), message="Profile image uploaded successfully")


@router.post("/multiple", summary="Upload audio, artwork and a profile image together")
async def upload_multiple(
    audio: list[UploadFile] | None = File(None),
    artwork: list[UploadFile] | None = File(None),
    profile_image: list[UploadFile] | None = File(None, alias="profileImage"),
    storage: UploadStorage = Depends(get_upload_storage),
):
    """Audio takes up to the per-request limit; artwork and profile image one file each."""
    audio = audio or []
    artwork = artwork or []
    profile_image = profile_image or []
    if len(artwork) > 1 or len(profile_image) > 1:
        raise UploadRejectedError("Only one artwork and one profile image are accepted")

    files = (
        [("audio", f) for f in audio]
        + [("artwork", f) for f in artwork]
        + [("profileImage", f) for f in profile_image]
    )
    try:
        stored = await storage.save_all(files)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to upload files", e) from e

    result: dict = {"audio": [], "artwork": None, "profileImage": None}
    for (field, _), item in zip(files, stored, strict=True):
        if field == "audio":
            result["audio"].append(item.to_dict())
        else:
            result[field] = item.to_dict()

    return envelope(data=result, message="Files uploaded successfully")


@router.delete("/{filename}", summary="Delete an uploaded file")
async def delete_upload(
    filename: str,
    storage: UploadStorage = Depends(get_upload_storage),
):
    try:
        storage.delete(filename)
    except CatalogServiceError:
        raise
    except Exception as e:
        raise server_error("Failed to delete file", e) from e
    return envelope(message="File deleted successfully")


@router.get("/files", summary="List uploaded files")
async def list_uploads(
    type: str = Query("all", pattern="^(all|audio|images|artwork)$"),
    storage: UploadStorage = Depends(get_upload_storage),
):
    try:
        files = storage.list_files(type)
    except Exception as e:
        raise server_error("Failed to list files", e) from e
    return envelope(data=files)
