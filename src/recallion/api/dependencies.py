"""API dependencies."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from recallion.api.auth import verify_token
from recallion.core.base import ServiceErrorDetails
from recallion.core.errors import AuthenticationError, ServiceUnavailableError
from recallion.core.logging import bind_log_context
from recallion.services.chat_service import ChatService
from recallion.services.memory_service import MemoryService
from recallion.services.review import ReviewPipeline

# These will be set by the main.py lifespan
memory_service: MemoryService | None = None
chat_service: ChatService | None = None
review_pipeline: ReviewPipeline | None = None

bearer_scheme = HTTPBearer(auto_error=False)


def _not_initialized(name: str) -> ServiceUnavailableError:
    return ServiceUnavailableError(
        message=f"{name} not initialized",
        details=ServiceErrorDetails(source="dependencies", operation="resolve", service_name=name),
    )


async def get_current_owner(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Owner id from the verified bearer token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError(details={"source": "get_current_owner", "operation": "credentials"})
    owner_id = verify_token(credentials.credentials).owner_id
    bind_log_context(owner_id=owner_id)
    return owner_id


def get_memory_service() -> MemoryService:
    if memory_service is None:
        raise _not_initialized("memory_service")
    return memory_service


def get_chat_service() -> ChatService:
    if chat_service is None:
        raise _not_initialized("chat_service")
    return chat_service


def get_review_pipeline() -> ReviewPipeline:
    if review_pipeline is None:
        raise _not_initialized("review_pipeline")
    return review_pipeline


OwnerId = Annotated[str, Depends(get_current_owner)]
MemoryServiceDep = Annotated[MemoryService, Depends(get_memory_service)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
ReviewPipelineDep = Annotated[ReviewPipeline, Depends(get_review_pipeline)]
