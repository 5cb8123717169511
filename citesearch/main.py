from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from citesearch.api.routes import media, profiles, search, suggestions
from citesearch.config import settings
from citesearch.services import logger as log_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_service.log_event(event_type="startup", message="citesearch API starting")
    yield


app = FastAPI(
    title="citesearch",
    description="Conversational search with cited, streamed answers",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(search.router)
app.include_router(profiles.router)
app.include_router(suggestions.router)
app.include_router(media.router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "service": "citesearch"}
