"""Message API routes.

Handles prompt matching, template listing, message edits, history,
export/import and usage statistics.
"""

import datetime
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from wishgen.api.deps import (
    get_catalog,
    get_generation_service,
    get_matching_service,
    get_message_service,
)
from wishgen.api.schemas import (
    CategoryInfo,
    CategoryListResponse,
    ClearResponse,
    EditRequest,
    EditResponse,
    ExamplesResponse,
    ExportResponse,
    GenerateRequest,
    GenerateResponse,
    ImportRequest,
    ImportResponse,
    StatsResponse,
    TemplateResponse,
)
from wishgen.core.config import Settings, get_settings
from wishgen.db.models import GeneratedMessageRead
from wishgen.interfaces.catalog import BaseTemplateCatalog
from wishgen.services.message_service import MessageService, as_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


# =============================================================================
# Generation
# =============================================================================


@router.post(
    "/generate",
    response_model=GenerateResponse,
    status_code=status.HTTP_200_OK,
)
async def generate_message(
    request: GenerateRequest,
    service: MessageService = Depends(get_generation_service),
    settings: Settings = Depends(get_settings),
) -> GenerateResponse:
    """Match a prompt to a template and store the result.

    Storage is best effort: if the database is unavailable the response
    still carries the matched template, with ``saved`` set to False.

    Args:
        request: Prompt and optional user id.
        service: Message service.
        settings: Application settings.

    Returns:
        GenerateResponse with category, template and placeholder variables.

    Raises:
        HTTPException: If the prompt exceeds the configured length.
    """
    if len(request.prompt) > settings.prompt_max_length:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Prompt must be at most {settings.prompt_max_length} characters",
        )

    try:
        logger.info(f"Generating message for prompt: {request.prompt[:80]!r}")
        return await service.generate(request.prompt, user_id=request.user_id)

    except Exception as e:
        logger.error(f"Message generation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating message: {str(e)}",
        ) from e


@router.post(
    "/examples",
    response_model=ExamplesResponse,
    status_code=status.HTTP_200_OK,
)
async def run_examples(
    service: MessageService = Depends(get_matching_service),
) -> ExamplesResponse:
    """Run the demo prompts through the matcher without storing them."""
    return ExamplesResponse(examples=service.examples())


# =============================================================================
# Catalog
# =============================================================================


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(
    catalog: BaseTemplateCatalog = Depends(get_catalog),
) -> CategoryListResponse:
    return CategoryListResponse(
        categories=[
            CategoryInfo(name=category.value, display_name=category.display_name)
            for category in catalog.categories()
        ]
    )


@router.get("/templates", response_model=list[TemplateResponse])
async def list_templates(
    catalog: BaseTemplateCatalog = Depends(get_catalog),
) -> list[TemplateResponse]:
    """List every catalog template with its placeholder variables."""
    return [
        TemplateResponse(
            id=template.id,
            name=template.name,
            category=template.category.value,
            content=template.content,
            variables=list(template.variables),
        )
        for template in catalog.all_templates()
    ]


# =============================================================================
# Stored Messages
# =============================================================================


@router.post("/edit", response_model=EditResponse)
async def edit_message(
    request: EditRequest,
    service: MessageService = Depends(get_message_service),
) -> EditResponse:
    """Save the user's edited text for a generated message.

    Args:
        request: Message id and the edited text.
        service: Message service.

    Returns:
        EditResponse on success.

    Raises:
        HTTPException: 404 if the message does not exist, 500 on database errors.
    """
    try:
        updated = await service.edit(request.message_id, request.edited_message)
        if not updated:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Message not found",
            )
        return EditResponse()

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Message edit failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Message edit failed: {str(e)}",
        ) from e


@router.get("/history", response_model=list[GeneratedMessageRead])
async def get_history(
    user_id: str | None = Query(None, description="Only messages of this user"),
    category: str | None = Query(None, description="Only messages of this category"),
    q: str | None = Query(None, description="Case-insensitive text search"),
    limit: int | None = Query(None, ge=1, description="Maximum number of records"),
    start: datetime.datetime | None = Query(None, description="Created at or after (ISO 8601)"),
    end: datetime.datetime | None = Query(None, description="Created at or before (ISO 8601)"),
    service: MessageService = Depends(get_message_service),
    settings: Settings = Depends(get_settings),
) -> list[GeneratedMessageRead]:
    """Return stored messages, newest first.

    Naive ``start``/``end`` values are taken as UTC.

    Raises:
        HTTPException: 422 if ``limit`` exceeds the configured maximum or
            ``start`` is after ``end``, 500 on database errors.
    """
    if limit is not None and limit > settings.history_max_limit:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"limit must be at most {settings.history_max_limit}",
        )
    if start is not None and end is not None and as_utc(start) > as_utc(end):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="start must not be after end",
        )

    try:
        messages = await service.history(
            user_id=user_id,
            category=category,
            search=q,
            limit=limit or settings.history_default_limit,
            start=start,
            end=end,
        )
        logger.info(f"Retrieved {len(messages)} history records")
        return [GeneratedMessageRead.model_validate(m, from_attributes=True) for m in messages]

    except Exception as e:
        logger.error(f"History query failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"History query failed: {str(e)}",
        ) from e


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    user_id: str | None = Query(None, description="Only messages of this user"),
    service: MessageService = Depends(get_message_service),
) -> StatsResponse:
    try:
        return await service.stats(user_id=user_id)

    except Exception as e:
        logger.error(f"Stats query failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Stats query failed: {str(e)}",
        ) from e


@router.get("/export", response_model=ExportResponse)
async def export_messages(
    user_id: str | None = Query(None, description="Only messages of this user"),
    service: MessageService = Depends(get_message_service),
) -> ExportResponse:
    """Dump stored messages as JSON that ``POST /messages/import`` accepts."""
    try:
        messages = await service.export(user_id=user_id)
        return ExportResponse(
            exported_at=datetime.datetime.now(datetime.timezone.utc),
            count=len(messages),
            messages=[
                GeneratedMessageRead.model_validate(m, from_attributes=True) for m in messages
            ],
        )

    except Exception as e:
        logger.error(f"Export failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Export failed: {str(e)}",
        ) from e


@router.post("/import", response_model=ImportResponse)
async def import_messages(
    request: ImportRequest,
    service: MessageService = Depends(get_message_service),
) -> ImportResponse:
    """Restore exported messages.

    Messages whose id is already stored are skipped, so importing the
    same export twice does not duplicate anything.
    """
    try:
        imported, skipped = await service.import_messages(request.messages)
        return ImportResponse(imported=imported, skipped=skipped)

    except Exception as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Import failed: {str(e)}",
        ) from e


@router.delete("", response_model=ClearResponse)
async def clear_messages(
    user_id: str | None = Query(None, description="Only clear messages of this user"),
    service: MessageService = Depends(get_message_service),
) -> ClearResponse:
    """Delete every stored message, or every message of one user."""
    try:
        return ClearResponse(deleted=await service.clear(user_id=user_id))

    except Exception as e:
        logger.error(f"Clear failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Clear failed: {str(e)}",
        ) from e


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: uuid.UUID,
    service: MessageService = Depends(get_message_service),
) -> None:
    """Delete a stored message.

    Raises:
        HTTPException: 404 if the message does not exist.
    """
    try:
        deleted = await service.delete(message_id)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Message not found",
            )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Message delete failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Message delete failed: {str(e)}",
        ) from e
