"""
RAG (Retrieval-Augmented Generation) service.
Embeds the question, ranks stored chunks, builds the context block and asks
the answer generator.
"""
import asyncio
import time
from typing import Callable, List, Optional

from ..config import Settings
from ..embedding import Embedder
from ..errors import GenerationTimeout
from ..logging_config import logger
from ..prompts import build_context
from ..retrieval import rank
from ..schemas import Answer, SearchHit, Source
from ..utils.helpers import aggregate_sources, preview
from .library_service import LibraryStore
from .model_service import AnswerGenerator, build_generator

NO_RESULTS_ANSWER = "No relevant documents found. Upload a document to improve results."
DEFAULT_SEARCH_K = 4

GeneratorFactory = Callable[..., AnswerGenerator]


class RagService:
    def __init__(
        self,
        store: LibraryStore,
        settings: Settings,
        embedder: Optional[Embedder] = None,
        generator_factory: GeneratorFactory = build_generator,
    ):
        self.store = store
        self.settings = settings
        self.embedder = embedder or store.embedder
        self._generator_factory = generator_factory

    async def search(
        self,
        query: str,
        collection_id: Optional[str] = None,
        k: int = DEFAULT_SEARCH_K,
    ) -> List[SearchHit]:
        """
        Rank chunks against the query, scoped to one collection if given.
        """
        t = time.perf_counter()
        query_vector = await asyncio.to_thread(self.embedder.embed, query)
        chunks = await asyncio.to_thread(self.store.scan_chunks, collection_id)
        ranked = rank(query_vector, [(c.embedding, c) for c in chunks], k)

        logger.info(
            "Vector search",
            collection_id=collection_id,
            candidates=len(chunks),
            returned=len(ranked),
            elapsed_ms=round((time.perf_counter() - t) * 1000, 2),
        )
        return [
            SearchHit(text=c.content, source=c.document_name, document_id=c.document_id, score=score)
            for c, score in ranked
        ]

    async def answer_query(
        self,
        query: str,
        collection_id: Optional[str] = None,
        k: Optional[int] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Answer:
        """
        Answer a question from the stored documents.

        With no retrieved chunks the canned NO_RESULTS_ANSWER is returned and
        the generator is never called. Generator errors propagate unchanged;
        exceeding the timeout raises GenerationTimeout.
        """
        start_time = time.time()
        hits = await self.search(query, collection_id, k if k is not None else self.settings.top_k)

        if not hits:
            logger.info("Query completed (no relevant documents found)", query=query)
            return Answer(answer=NO_RESULTS_ANSWER, sources=[])

        context = build_context([h.text for h in hits])
        logger.info(
            "Selected chunks for context",
            chunks=len(hits),
            context_length=len(context),
            top_preview=preview(hits[0].text),
        )
        generator = self._generator_factory(self.settings, model=model, api_key=api_key)
        limit = timeout if timeout is not None else self.settings.generation_timeout

        try:
            text = await asyncio.wait_for(generator.generate(query, context), limit)
        except asyncio.TimeoutError as e:
            raise GenerationTimeout(f"Answer generation exceeded {limit} seconds") from e

        sources = aggregate_sources((h.source, h.score) for h in hits)
        logger.info(
            "Query completed",
            chunks=len(hits),
            sources=[s["name"] for s in sources],
            time_ms=round((time.time() - start_time) * 1000, 2),
        )
        return Answer(answer=text, sources=[Source(**s) for s in sources])
