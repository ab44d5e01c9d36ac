"""
Main FastAPI application entry point.
Responsibilities: app setup, router registration, startup hooks.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import Settings, get_settings
from .db import make_engine, make_session_factory
from .db.migrations import init_db
from .embedding import SentenceTransformerEmbedder, build_embedder
from .logging_config import logger, setup_logging
from .routes import chat, collections, documents, models
from .services.library_service import LibraryStore
from .services.rag_service import GeneratorFactory, RagService
from .services.model_service import build_generator


def create_app(
    settings: Optional[Settings] = None,
    generator_factory: GeneratorFactory = build_generator,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.json_logs)

    engine = make_engine(settings.database_url)
    embedder = build_embedder(settings)
    store = LibraryStore(
        make_session_factory(engine),
        embedder,
        chunk_size=settings.chunk_size,
        default_collection_name=settings.default_collection_name,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Preparing database...")
        init_db(engine)
        if isinstance(embedder, SentenceTransformerEmbedder):
            logger.info("Preloading embedding model...")
            embedder.preload()
        status = store.ensure_embedder_compatible(settings.reembed_on_mismatch)
        logger.info("Embedder checked", embedder=embedder.name, status=status)
        store.sweep_orphans()
        store.ensure_default_collection()
        yield
        logger.info("Application shutting down")
        engine.dispose()

    app = FastAPI(title="Local Doc RAG", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.rag = RagService(store, settings, embedder=embedder, generator_factory=generator_factory)

    app.include_router(collections.router)
    app.include_router(documents.router)
    app.include_router(chat.router)
    app.include_router(models.router)
    return app


app = create_app()
