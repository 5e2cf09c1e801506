from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Query

from mythboard.api.deps import (
    SessionDep,
    SettingsDep,
    get_identity,
    get_optional_identity,
    get_post_or_404,
    get_reaction_engine,
)
from mythboard.core.identity import Identity
from mythboard.core.targets import Target
from mythboard.schemas.reaction import (
    ImageReactionCreate,
    ReactionCreate,
    ReactionSummary,
    ReactionTypesResponse,
)
from mythboard.services.reactions import ReactionToggleEngine

router = APIRouter()

EngineDep = Annotated[ReactionToggleEngine, Depends(get_reaction_engine)]


@router.get("/types", response_model=ReactionTypesResponse, summary="List the configured reaction types")
def list_reaction_types(settings: SettingsDep):
    """List the configured reaction types and the cardinality policy"""
    return ReactionTypesResponse(types=settings.REACTION_TYPES, policy=settings.REACTION_POLICY)


@router.get("/post/{post_id}", response_model=ReactionSummary, summary="Get reaction counts of a post")
def get_post_reactions(
    post_id: str,
    session: SessionDep,
    engine: EngineDep,
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)]
):
    """Get reaction counts of a post and the caller's own reactions"""
    get_post_or_404(session, post_id)
    return engine.summary(Target.post(post_id), identity)


@router.post("/post/{post_id}", response_model=ReactionSummary, summary="Toggle a reaction on a post")
def react_to_post(
    post_id: str,
    reaction_in: ReactionCreate,
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep,
    engine: EngineDep
):
    """Toggle a reaction on a post

    Selecting a new type adds it (or replaces the previous one under the single
    policy), selecting the same type again removes it. Returns reloaded counts.
    """
    get_post_or_404(session, post_id)
    return engine.select(identity, Target.post(post_id), reaction_in.type)


@router.get("/image", response_model=ReactionSummary, summary="Get reaction counts of an image")
def get_image_reactions(
    engine: EngineDep,
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)],
    url: str = Query(..., min_length=1, max_length=2048, description="Public URL of the image")
):
    """Get reaction counts of a gallery image"""
    return engine.summary(Target.image(url), identity)


@router.post("/image", response_model=ReactionSummary, summary="Toggle a reaction on an image")
def react_to_image(
    reaction_in: ImageReactionCreate,
    identity: Annotated[Identity, Depends(get_identity)],
    engine: EngineDep
):
    """Toggle a reaction on a gallery image"""
    return engine.select(identity, Target.image(reaction_in.image_url), reaction_in.type)
