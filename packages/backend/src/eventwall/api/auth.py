"""Auth routes.

Learn: Sign-in happens at the identity provider, which hands the browser
a JWT. The only thing we expose is "who am I", used by the wall to
greet the guest and to recognize their own uploads.
"""

from fastapi import APIRouter, Depends

from eventwall.auth.dependencies import CurrentIdentity, get_current_user
from eventwall.schemas.site import Identity

router = APIRouter()


@router.get("/auth/me", response_model=Identity)
async def me(identity: CurrentIdentity = Depends(get_current_user)):
    """Return the authenticated guest."""
    return Identity(
        user_id=identity.user_id,
        display_name=identity.display_name,
        email=identity.email,
    )
