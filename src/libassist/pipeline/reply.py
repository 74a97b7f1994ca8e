"""Conversation reply generation: retrieval, sanitization and prompt assembly."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from libassist.index.search import DEFAULT_SIMILARITY_THRESHOLD, Searcher
from libassist.index.storage import LibraryStore
from libassist.models import LibraryResource, UserQuery
from libassist.pipeline.completion import CompletionClient
from libassist.pipeline.prompts import get_system_prompt
from libassist.pipeline.sanitizer import sanitize_untrusted_content
from libassist.utils.text import truncate

LOGGER = logging.getLogger(__name__)

PROMPT_LOG_CHARS = 200

LOCALIZED_ERROR_MESSAGES = {
    "uk": "Вибачте, сталася помилка при генеруванні відповіді. Будь ласка, спробуйте ще раз.",
    "ru": "Извините, произошла ошибка при генерировании ответа. Пожалуйста, попробуйте еще раз.",
    "en": "Sorry, an error occurred while generating the response. Please try again.",
}

RESOURCE_HEADINGS = {
    "uk": "Доступні ресурси:",
    "ru": "Доступные ресурсы:",
    "en": "Available resources:",
}


class PipelineError(RuntimeError):
    """Raised when any step of reply generation fails; ``cause`` holds the original error."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


def get_localized_error_message(language: str) -> str:
    return LOCALIZED_ERROR_MESSAGES.get(language, LOCALIZED_ERROR_MESSAGES["en"])


def build_resource_context(resources: Sequence[LibraryResource], language: str) -> str:
    """Render keyword-matched resources as a prompt section."""
    if not resources:
        return ""

    heading = RESOURCE_HEADINGS.get(language, RESOURCE_HEADINGS["en"])
    lines = []
    for resource in resources:
        line = f"- {resource.name_for(language)}: {resource.description_for(language)}"
        if resource.url:
            line += f" ({resource.url})"
        lines.append(line)
    return f"{heading}\n" + "\n".join(lines)


def log_pipeline_error(
    error: BaseException, *, conversation_id: int, user_id: int, prompt: str
) -> None:
    LOGGER.error(
        "Failed to generate response (conversation=%s, user=%s, prompt=%r): %s",
        conversation_id,
        user_id,
        truncate(prompt, PROMPT_LOG_CHARS),
        error,
        exc_info=error,
    )


class ReplyGenerator:
    """Composes the grounded system prompt and asks the completion model for a reply."""

    def __init__(
        self,
        store: LibraryStore,
        searcher: Searcher,
        completion: CompletionClient,
        *,
        history_limit: int = 10,
        rag_top_k: int = 3,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> None:
        self.store = store
        self.searcher = searcher
        self.completion = completion
        self.history_limit = history_limit
        self.rag_top_k = rag_top_k
        self.similarity_threshold = similarity_threshold

    def build_system_prompt(
        self, language: str, resources: Sequence[LibraryResource], rag_context: str
    ) -> str:
        sections = [
            get_system_prompt(language),
            build_resource_context(resources, language),
            rag_context,
        ]
        return "\n\n".join(section for section in sections if section)

    def generate_conversation_reply(
        self,
        prompt: str,
        language: str,
        conversation_id: Optional[int],
        user_id: Optional[int],
        history: Sequence[Dict[str, str]] = (),
    ) -> str:
        """Return the model's answer to ``prompt``.

        Raises:
            PipelineError: when retrieval, prompt assembly or the completion call fails.
        """
        try:
            resources = self.store.search_resources(prompt)
            raw_context = self.searcher.rag_context(
                prompt,
                language,
                top_k=self.rag_top_k,
                threshold=self.similarity_threshold,
            )
            rag_context = sanitize_untrusted_content(raw_context) if raw_context else ""

            self._log_query(prompt, language, conversation_id, user_id, resources)

            system_prompt = self.build_system_prompt(language, resources, rag_context)
            messages = self._bounded_history(history)
            messages.append({"role": "user", "content": prompt})

            completion = self.completion.complete(system_prompt, messages)
            return completion.text
        except Exception as exc:
            raise PipelineError("AI pipeline failed", cause=exc) from exc

    def _bounded_history(self, history: Sequence[Dict[str, str]]) -> List[Dict[str, str]]:
        if self.history_limit <= 0:
            return []
        return [
            {"role": item["role"], "content": item["content"]}
            for item in list(history)[-self.history_limit :]
        ]

    def _log_query(
        self,
        prompt: str,
        language: str,
        conversation_id: Optional[int],
        user_id: Optional[int],
        resources: Sequence[LibraryResource],
    ) -> None:
        try:
            self.store.log_user_query(
                UserQuery(
                    query=prompt,
                    language=language,
                    user_id=user_id,
                    conversation_id=conversation_id,
                    resources_returned=[r.id for r in resources if r.id is not None],
                )
            )
        except Exception as exc:
            LOGGER.warning("Failed to log user query for conversation %s: %s", conversation_id, exc)
