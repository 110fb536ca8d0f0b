"""Profile, stats and settings callables."""

from firebase_functions import https_fn

from locki.brokers.callable.call_handler import (
    CORS,
    INGRESS,
    decode_image,
    dump,
    handle_call,
    require_str,
)
from locki.exceptions import ValidationError
from locki.models.function_types import UpdateRequest


def _changes(data):
    changes = data.get("changes")
    if not isinstance(changes, dict):
        raise ValidationError("changes must be an object", field="changes")
    return changes


def handle_get_profile(ctx, uid, data):
    user_id = data.get("userId") or uid
    return {"profile": dump(ctx.profiles.get_profile(user_id))}


def handle_get_user_stats(ctx, uid, data):
    user_id = data.get("userId") or uid
    return {"stats": dump(ctx.profiles.get_stats(user_id))}


def handle_update_profile(ctx, uid, data: UpdateRequest):
    profile = ctx.profiles.update_profile(uid, uid, _changes(data))
    return {"profile": dump(profile)}


def handle_change_username(ctx, uid, data):
    return {"profile": dump(ctx.profiles.change_username(uid, require_str(data, "username")))}


def handle_upload_profile_image(ctx, uid, data):
    image = decode_image(data)
    if image is None:
        raise ValidationError("imageBase64 is required", field="imageBase64")
    return {"profileImageUrl": ctx.profiles.upload_profile_image(uid, image)}


def handle_get_settings(ctx, uid, data):
    return {"settings": dump(ctx.profiles.get_settings(uid))}


def handle_update_settings(ctx, uid, data: UpdateRequest):
    return {"settings": dump(ctx.profiles.update_settings(uid, _changes(data)))}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_profile_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get profile", handle_get_profile)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_user_stats_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get user stats", handle_get_user_stats)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def update_profile_callable(req: https_fn.CallableRequest):
    """Edit the caller's profile; data.changes holds the edited fields."""
    return handle_call(req, "update profile", handle_update_profile)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def change_username_callable(req: https_fn.CallableRequest):
    return handle_call(req, "change username", handle_change_username)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def upload_profile_image_callable(req: https_fn.CallableRequest):
    return handle_call(req, "upload profile image", handle_upload_profile_image)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def get_settings_callable(req: https_fn.CallableRequest):
    return handle_call(req, "get settings", handle_get_settings)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def update_settings_callable(req: https_fn.CallableRequest):
    return handle_call(req, "update settings", handle_update_settings)
