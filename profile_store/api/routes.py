"""HTTP route handlers for the profile API."""

from __future__ import annotations

import logging
from typing import Optional

from anyio import to_thread
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from profile_store.config import Settings
from profile_store.profiles.errors import (
    ProfileStoreError,
    ProfileValidationError,
    StorageError,
)
from profile_store.profiles.models import ProfileFields
from profile_store.profiles.store import ProfileStore
from profile_store.profiles.uploads import StagedPhoto, stage_upload

from .schemas import DeleteResponse, ProfileDetailModel, ProfileMutationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


def get_profile_store(request: Request) -> ProfileStore:
    return request.app.state.profile_store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def load_profile_fields(
    name: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    contact: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    note: Optional[str] = Form(None),
) -> ProfileFields:
    try:
        return ProfileFields.model_validate(
            {
                "name": name,
                "address": address,
                "contact": contact,
                "date": date,
                "note": note,
            }
        )
    except ValidationError as exc:
        raise ProfileValidationError() from exc


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


async def _stage(upload: UploadFile, store: ProfileStore, settings: Settings) -> StagedPhoto:
    return await stage_upload(
        upload,
        store.tmp_dir,
        max_bytes=settings.max_photo_bytes,
        chunk_size=settings.upload_chunk_bytes,
    )


@router.post("")
async def create_profile(
    fields: ProfileFields = Depends(load_profile_fields),
    photo: Optional[UploadFile] = File(None),
    store: ProfileStore = Depends(get_profile_store),
    settings: Settings = Depends(get_app_settings),
):
    if not _has_file(photo):
        raise ProfileValidationError()

    try:
        staged = await _stage(photo, store, settings)
        profile = await to_thread.run_sync(store.create, fields, staged)
    except ProfileStoreError:
        raise
    except Exception as exc:
        logger.exception("Create error")
        raise StorageError("Failed to create profile") from exc

    response = ProfileMutationResponse(
        id=profile.id,
        link=store.link_for(profile.id),
        message="Profile created successfully",
    )
    return JSONResponse(content=response.model_dump())


@router.get("")
async def list_profiles(store: ProfileStore = Depends(get_profile_store)):
    try:
        summaries = await to_thread.run_sync(store.list_profiles)
    except ProfileStoreError:
        raise
    except Exception as exc:
        logger.exception("Get all error")
        raise StorageError("Failed to fetch profiles") from exc

    return JSONResponse(content=[summary.model_dump() for summary in summaries])


@router.get("/{profile_id}")
async def get_profile(profile_id: str, store: ProfileStore = Depends(get_profile_store)):
    try:
        profile = await to_thread.run_sync(store.get, profile_id)
    except ProfileStoreError:
        raise
    except Exception as exc:
        logger.exception("Get single error")
        raise StorageError("Failed to fetch profile") from exc

    detail = ProfileDetailModel.from_domain(profile, store.photo_url(profile))
    return JSONResponse(content=detail.model_dump(by_alias=True))


@router.put("/{profile_id}")
async def update_profile(
    profile_id: str,
    fields: ProfileFields = Depends(load_profile_fields),
    photo: Optional[UploadFile] = File(None),
    store: ProfileStore = Depends(get_profile_store),
    settings: Settings = Depends(get_app_settings),
):
    try:
        staged = await _stage(photo, store, settings) if _has_file(photo) else None
        profile = await to_thread.run_sync(store.update, profile_id, fields, staged)
    except ProfileStoreError:
        raise
    except Exception as exc:
        logger.exception("Update error")
        raise StorageError("Failed to update profile") from exc

    response = ProfileMutationResponse(
        id=profile.id,
        link=store.link_for(profile.id),
        message="Profile updated successfully",
    )
    return JSONResponse(content=response.model_dump())


@router.delete("/{profile_id}")
async def delete_profile(profile_id: str, store: ProfileStore = Depends(get_profile_store)):
    try:
        await to_thread.run_sync(store.delete, profile_id)
    except ProfileStoreError:
        raise
    except Exception as exc:
        logger.exception("Delete error")
        raise StorageError("Failed to delete profile") from exc

    return JSONResponse(content=DeleteResponse(message="Profile deleted successfully").model_dump())
