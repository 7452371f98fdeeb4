import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator

from ..models import User
from ..services.suggestions import MAX_SUGGESTIONS, SuggestionProvider, get_suggestion_provider
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


class SubtaskRequest(BaseModel):
    title: str
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None


class SuggestedSubtask(BaseModel):
    title: str
    description: str = ""


class SubtaskSuggestions(BaseModel):
    subtasks: List[SuggestedSubtask]


@router.post("/generate-subtasks", response_model=SubtaskSuggestions)
def generate_subtasks(
    request: SubtaskRequest,
    current_user: User = Depends(get_current_user),
    provider: SuggestionProvider = Depends(get_suggestion_provider),
):
    """Ask the AI service to break a task down into sub-task titles."""
    suggested = provider.suggest(request.title, request.description)
    titles = [title.strip() for title in suggested if title and title.strip()][:MAX_SUGGESTIONS]
    logger.info("Generated %d subtask suggestions for user %s", len(titles), current_user.id)
    return SubtaskSuggestions(subtasks=[SuggestedSubtask(title=title) for title in titles])
