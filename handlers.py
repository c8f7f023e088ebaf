from fastapi import Request, Depends, Response
from fastapi.responses import ORJSONResponse
from itsdangerous import BadSignature
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from typing import Optional
import logging
import os
import shutil

import config
from auth import optional_user, REGISTRATION_COOKIE, read_registration_token
from languages import DEFAULT_LANGUAGE, LanguageNotFoundError, find_by_name
from models_sql import PasteCreate, PasteOut, RegisterRequest, User
from queries import Queries, QueryError, NoRowsError, get_queries
from utils import to_iso_z, now_utc, random_id_while, generate_unique_id
from validation import is_valid_image

logger = logging.getLogger(__name__)

AVATARS_URL_PATH = "/assets/avatars"


def paste_payload(paste: PasteOut) -> dict:
    payload = paste.model_dump(mode="json")
    payload["created_at"] = to_iso_z(paste.created_at)
    payload["url"] = f"/api/v3/pastes/{paste.id}"
    return payload


async def create_paste_handler(
    create_info: PasteCreate,
    user: Optional[User] = Depends(optional_user),
    queries: Queries = Depends(get_queries),
):
    if create_info.private and user is None:
        return ORJSONResponse(status_code=401, content={"message": "Can't create a private paste while unauthorized."})

    if create_info.private and create_info.anonymous:
        return ORJSONResponse(status_code=400, content={"message": "Can't create a private anonymous paste."})

    languages = []
    for pasty in create_info.pasties:
        if pasty.language is None:
            languages.append(DEFAULT_LANGUAGE)
            continue
        try:
            languages.append(find_by_name(pasty.language).name)
        except LanguageNotFoundError:
            return ORJSONResponse(status_code=400, content={"message": f"Unknown language: {pasty.language}"})

    owner_id = None if create_info.anonymous or user is None else user.id

    try:
        async with queries.transaction():
            paste_id = await generate_unique_id(queries.exists_paste)
            paste = await queries.create_paste(paste_id, now_utc(), create_info.title, owner_id, create_info.private)

            created = []
            for pasty, language in zip(create_info.pasties, languages):
                pasty_id = await generate_unique_id(queries.exists_pasty)
                created.append(await queries.create_pasty(pasty_id, paste.id, pasty.title, pasty.content, language))
    except QueryError:
        logger.exception("Failed to create a paste")
        return ORJSONResponse(status_code=500, content={"message": "Failed to create the paste"})

    out = PasteOut(**paste.model_dump(), pasties=created)
    return ORJSONResponse(status_code=201, content=paste_payload(out))


async def get_paste_handler(
    id: str,
    user: Optional[User] = Depends(optional_user),
    queries: Queries = Depends(get_queries),
):
    try:
        paste = await queries.get_paste(id)
        # private pastes are only visible to their owner
        if paste.private and (user is None or user.id != paste.owner_id):
            raise NoRowsError(f"paste {id} not found")
        pasties = await queries.get_paste_pasties(id)
    except NoRowsError:
        return ORJSONResponse(status_code=404, content={"message": "Paste not found"})
    except QueryError:
        logger.exception("Failed to load paste %s", id)
        return ORJSONResponse(status_code=500, content={"message": "Failed to load the paste"})

    return ORJSONResponse(content=paste_payload(PasteOut(**paste.model_dump(), pasties=pasties)))


async def paste_count_handler(queries: Queries = Depends(get_queries)):
    try:
        count = await queries.get_paste_count()
    except QueryError:
        logger.exception("Failed to count pastes")
        return ORJSONResponse(status_code=500, content={"message": "Failed to count pastes"})
    return {"count": count}


async def register_handler(register: RegisterRequest, request: Request, queries: Queries = Depends(get_queries)):
    """Finishes an OAuth login.

    The provider callback leaves the provider identity in a signed
    registration cookie. A known identity is signed in directly, a new one
    gets an account under the requested username.
    """
    token = request.cookies.get(REGISTRATION_COOKIE)
    if not token:
        return ORJSONResponse(status_code=400, content={"message": "Missing the registration cookie."})

    try:
        claims = read_registration_token(token)
    except (BadSignature, ValueError):
        return ORJSONResponse(status_code=400, content={"message": "The registration cookie is invalid or has expired."})

    provider_name = claims["provider_name"]
    provider_id = claims["provider_id"]

    try:
        if await queries.exists_user_by_provider(provider_name, provider_id):
            user = await queries.get_user_by_provider(provider_name, provider_id)
        else:
            username = (register.username or "").strip()
            if not username:
                return ORJSONResponse(status_code=400, content={"message": "Missing the username."})
            if await queries.exists_user_by_username(username):
                return ORJSONResponse(status_code=400, content={"message": "Username is already taken."})

            user_id = await generate_unique_id(queries.exists_user)
            user = await queries.create_user(
                user_id, now_utc(), username, claims.get("avatar_url") or "", provider_name, provider_id
            )
            logger.info("Registered user %s through %s", user.id, provider_name)
    except QueryError:
        logger.exception("Failed to register %s user %s", provider_name, provider_id)
        return ORJSONResponse(status_code=500, content={"message": "Failed to register the user"})

    request.session["user_id"] = user.id
    response = Response(status_code=200)
    response.delete_cookie(REGISTRATION_COOKIE, path="/")
    return response


async def get_self_handler(user: Optional[User] = Depends(optional_user)):
    if user is None:
        return ORJSONResponse(status_code=401, content={"message": "You must be authorized to get self."})
    payload = user.model_dump(mode="json")
    payload["created_at"] = to_iso_z(user.created_at)
    return ORJSONResponse(content=payload)


async def logout_handler(request: Request):
    # Clear session
    request.session["user_id"] = None
    return Response(status_code=200)


def avatar_id_taken(avatars_dir: str, avatar_id: str) -> bool:
    """Whether a stored avatar already uses `avatar_id` as its file stem."""
    with os.scandir(avatars_dir) as entries:
        for entry in entries:
            if not entry.is_file():
                continue
            if os.path.splitext(entry.name)[0] == avatar_id:
                return True
    return False


def create_avatar_file(avatars_dir: str, ext: str):
    """Pick a free avatar id and open its file for writing.

    Returns (avatar_id, path, file). Raises OSError when the directory or
    file can't be created.
    """
    os.makedirs(avatars_dir, exist_ok=True)
    avatar_id = random_id_while(lambda s: avatar_id_taken(avatars_dir, s))
    path = os.path.join(avatars_dir, f"{avatar_id}{ext}")
    return avatar_id, path, open(path, "xb")


def remove_file(path: str):
    try:
        os.remove(path)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)


async def patch_avatar_handler(
    request: Request,
    user: Optional[User] = Depends(optional_user),
    queries: Queries = Depends(get_queries),
):
    """Sets the user's avatar.

    PATCH /api/v3/settings/avatar
    """
    if user is None:
        return ORJSONResponse(status_code=401, content={"message": "Unauthorized"})

    async with request.form() as form:
        file = form.get("file")
        # a plain text field under the same name is not a file either
        if not isinstance(file, UploadFile):
            return ORJSONResponse(status_code=400, content={"message": "Missing the avatar file."})

        try:
            await file.seek(0)
        except (OSError, ValueError) as e:
            logger.error("Failed to open the uploaded file: %s", e)
            return ORJSONResponse(status_code=500, content={"message": "Internal Server Error"})

        if not await run_in_threadpool(is_valid_image, file.file):
            return ORJSONResponse(status_code=400, content={"message": "The provided file is not a valid image file."})
        # validation consumed the header, copy from the start
        await file.seek(0)

        avatars_dir = config.get_avatars_dir()
        api_host = config.get_api_host()
        local_prefix = f"{api_host}{AVATARS_URL_PATH}/"
        ext = os.path.splitext(file.filename or "")[1]

        try:
            avatar_id, avatar_path, dst = await run_in_threadpool(create_avatar_file, avatars_dir, ext)
        except OSError as e:
            logger.error("Failed to create a new file for the avatar: %s", e)
            return ORJSONResponse(status_code=500, content={"message": "Internal Server Error"})

        with dst:
            try:
                await run_in_threadpool(shutil.copyfileobj, file.file, dst)
            except OSError as e:
                logger.error("Failed to copy the temp avatar to the final location: %s", e)
                dst.close()
                remove_file(avatar_path)
                return ORJSONResponse(status_code=500, content={"message": "Internal Server Error"})

    try:
        await queries.set_user_avatar(user.id, f"{local_prefix}{avatar_id}{ext}")
    except QueryError:
        logger.exception("Failed to store the new avatar url for user %s", user.id)
        remove_file(avatar_path)
        return ORJSONResponse(status_code=500, content={"message": "Internal Server Error"})

    if user.avatar_url and user.avatar_url.startswith(local_prefix):
        remove_file(os.path.join(avatars_dir, os.path.basename(user.avatar_url)))

    return Response(status_code=200)


async def health_handler(queries: Queries = Depends(get_queries)):
    try:
        await queries.get_paste_count()
    except QueryError:
        logger.exception("Health check query failed")
        return ORJSONResponse(status_code=500, content={"message": {"status": "error", "db_status": "unreachable"}})
    return {"status": "ok", "db_status": "ok"}
