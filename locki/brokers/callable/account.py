"""Account callables: sign-up, profile creation, sign-in and deactivation."""

from firebase_functions import https_fn

from locki.brokers.callable.call_handler import (
    CORS,
    INGRESS,
    dump,
    handle_call,
    optional_str,
    require_str,
)
from locki.models.function_types import SignUpRequest


def handle_sign_up(ctx, uid, data: SignUpRequest):
    profile = ctx.accounts.sign_up(
        email=require_str(data, "email"),
        password=require_str(data, "password"),
        username=require_str(data, "username"),
        display_name=optional_str(data, "displayName"),
        profession=optional_str(data, "profession", "") or "",
    )
    return {"profile": dump(profile)}


def handle_create_profile(ctx, uid, data):
    profile = ctx.accounts.create_profile(
        uid,
        require_str(data, "username"),
        email=optional_str(data, "email"),
        display_name=optional_str(data, "displayName"),
        profession=optional_str(data, "profession", "") or "",
    )
    return {"profile": dump(profile)}


def handle_check_username(ctx, uid, data):
    return {"available": ctx.accounts.is_username_available(require_str(data, "username"))}


def handle_reset_password(ctx, uid, data):
    ctx.accounts.reset_password(require_str(data, "email"))
    return {"requested": True}


def handle_record_sign_in(ctx, uid, data):
    return {"profile": dump(ctx.accounts.record_sign_in(uid))}


def handle_deactivate_account(ctx, uid, data):
    ctx.accounts.deactivate(uid)
    return {"deactivated": True}


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def sign_up_callable(req: https_fn.CallableRequest):
    """Create an auth account together with its profile."""
    return handle_call(req, "sign up", handle_sign_up, require_auth=False)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def create_profile_callable(req: https_fn.CallableRequest):
    """Create the profile of an already authenticated user."""
    return handle_call(req, "create profile", handle_create_profile)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def check_username_callable(req: https_fn.CallableRequest):
    return handle_call(req, "check username", handle_check_username, require_auth=False)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def reset_password_callable(req: https_fn.CallableRequest):
    return handle_call(req, "reset password", handle_reset_password, require_auth=False)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def record_sign_in_callable(req: https_fn.CallableRequest):
    """Stamp the caller's profile as active after sign-in."""
    return handle_call(req, "record sign in", handle_record_sign_in)


@https_fn.on_call(cors=CORS, ingress=INGRESS)
def deactivate_account_callable(req: https_fn.CallableRequest):
    return handle_call(req, "deactivate account", handle_deactivate_account)
