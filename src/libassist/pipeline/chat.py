"""Conversation turn handling on top of the reply generator."""

from __future__ import annotations

import logging
from typing import Dict, List

from libassist.index.storage import LibraryStore
from libassist.models import MESSAGE_ROLES, Conversation, Message
from libassist.pipeline.language import LanguageDetector, normalize_language
from libassist.pipeline.reply import (
    PipelineError,
    ReplyGenerator,
    get_localized_error_message,
    log_pipeline_error,
)

LOGGER = logging.getLogger(__name__)


class ChatService:
    """Persists both sides of a turn, falling back to a localized apology on failure."""

    def __init__(
        self,
        store: LibraryStore,
        generator: ReplyGenerator,
        detector: LanguageDetector | None = None,
        *,
        default_language: str = "uk",
    ) -> None:
        self.store = store
        self.generator = generator
        self.detector = detector or LanguageDetector()
        self.default_language = default_language

    def create_conversation(self, user_id: int, title: str, language: str | None = None) -> Conversation:
        if not title.strip():
            raise ValueError("Conversation title must not be empty")
        return self.store.create_conversation(
            Conversation(
                user_id=user_id,
                title=title.strip(),
                language=normalize_language(language, self.default_language),
            )
        )

    def history(self, conversation_id: int) -> List[Dict[str, str]]:
        history = []
        for message in self.store.get_messages(conversation_id)[-self.generator.history_limit :]:
            role = message.role
            if role not in MESSAGE_ROLES:
                LOGGER.warning(
                    "Unexpected role %r in conversation %s (message %s)",
                    role,
                    conversation_id,
                    message.id,
                )
                role = "user"
            history.append({"role": role, "content": message.content})
        return history

    def send_message(self, conversation_id: int, user_id: int, content: str) -> Message:
        """Store the user's message, answer it and store the answer."""
        if not content.strip():
            raise ValueError("Message content must not be empty")

        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            raise LookupError(f"Conversation {conversation_id} not found")

        language = self.detector.detect(content) or normalize_language(
            conversation.language, self.default_language
        )
        history = self.history(conversation_id)
        self.store.create_message(Message(conversation_id=conversation_id, role="user", content=content))

        try:
            reply = self.generator.generate_conversation_reply(
                content, language, conversation_id, user_id, history
            )
        except PipelineError as exc:
            log_pipeline_error(
                exc.cause or exc,
                conversation_id=conversation_id,
                user_id=user_id,
                prompt=content,
            )
            reply = get_localized_error_message(language)

        return self.store.create_message(
            Message(conversation_id=conversation_id, role="assistant", content=reply)
        )
