"""
Collection API Routes

Lists collections: a user sees their own, an admin sees every collection
with its owner so it can pick a ``collectionId`` for listing or create.
"""

from fastapi import APIRouter, Depends

from bookshelf.api.dependencies import get_collection_directory, get_current_identity
from bookshelf.api.schemas import CollectionResponse, ErrorResponse
from bookshelf.catalogue.query import Identity
from bookshelf.storage.collections import CollectionDirectory


router = APIRouter(prefix="/collections", tags=["collections"])


@router.get(
    "",
    response_model=list[CollectionResponse],
    responses={401: {"model": ErrorResponse, "description": "Not logged in"}},
)
async def list_collections(
    identity: Identity = Depends(get_current_identity),
    directory: CollectionDirectory = Depends(get_collection_directory),
):
    if identity.is_admin:
        collections = await directory.list_all()
    else:
        collections = await directory.collections_owned_by(identity.user_id)
    return [CollectionResponse.from_info(c) for c in collections]
