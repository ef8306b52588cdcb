"""Notes tutor: retrieval-grounded answers to questions about one folder."""

import logging
from collections.abc import Sequence

from app.config import Settings
from app.schemas.chat import ChatResponse, ConversationTurn
from app.services.context_assembler import format_context, prepare_history, render_history
from app.services.grounding import build_system_prompt, enforce_contract, refusal_for
from app.services.llm_provider import GenerativeProvider
from app.services.retriever import NoteSource, retrieval_confidence, retrieve
from app.services.scoring import CONFIDENCE_POLICIES, Scorer

logger = logging.getLogger(__name__)

UNCONFIGURED_REPLY = (
    "I cannot answer right now. Please add your `ANTHROPIC_API_KEY` to the "
    "`backend/.env` file and restart the server."
)


class TutorService:
    """Answers a question using only the notes it is handed."""

    def __init__(
        self,
        provider: GenerativeProvider | None,
        settings: Settings,
        scorer: Scorer | None = None,
    ):
        self.provider = provider
        self.settings = settings
        self.scorer = scorer
        self.confidence_policy = CONFIDENCE_POLICIES[settings.confidence_policy]

    async def reply(
        self,
        question: str,
        notes: Sequence[NoteSource],
        subject: str,
        turns: Sequence[ConversationTurn] = (),
    ) -> ChatResponse:
        """
        Produce the tutor's reply.

        Order matters: without a provider the canned reply wins; with a
        provider but no notes the refusal is returned without a model call.

        Raises:
            ProviderTransportError: the provider call failed.
        """
        top_chunks = retrieve(
            question,
            notes,
            top_k=self.settings.retrieval_top_k,
            scorer=self.scorer,
            max_chars=self.settings.chunk_max_chars,
        )
        confidence = retrieval_confidence(top_chunks, self.confidence_policy)
        context_text = format_context(top_chunks, max_chars=self.settings.max_context_chars)
        history = prepare_history(turns)

        if self.provider is None:
            return ChatResponse(reply=UNCONFIGURED_REPLY)

        if not top_chunks:
            logger.info("No notes to ground on for subject %r; refusing", subject)
            return ChatResponse(reply=refusal_for(subject))

        system_prompt = build_system_prompt(
            subject=subject,
            context_text=context_text,
            history_text=render_history(history),
            question=question,
            retrieval_confidence=confidence,
        )
        raw = await self.provider.complete(
            system_prompt, [{"role": "user", "content": question}]
        )

        enforced = enforce_contract(
            raw,
            context_text,
            fallback_confidence=confidence,
            check_citations=self.settings.verify_citations,
        )
        return ChatResponse(reply=enforced.reply, confidence=enforced.confidence)
