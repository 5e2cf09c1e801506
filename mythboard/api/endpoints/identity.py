from typing import Annotated
from fastapi import APIRouter, Depends

from mythboard.api.deps import get_identity_provider
from mythboard.core.identity import AnonymousIdentityProvider, IdentityProvider, require
from mythboard.schemas.user import IdentityResponse

router = APIRouter()


@router.get("", response_model=IdentityResponse, summary="Resolve the current identity")
def read_identity(
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)]
):
    """Resolve the identity reactions and favorites are recorded under

    In anonymous mode the first call issues the token and persists it in a cookie.
    """
    identity = require(provider.resolve())
    issued = isinstance(provider, AnonymousIdentityProvider) and provider.issued
    return IdentityResponse(user_identifier=identity.value, anonymous=identity.anonymous, issued=issued)
