from contextlib import asynccontextmanager

from fastapi import FastAPI
from .db import init_db
from .logging import configure_logging
from .settings import settings
from .routers import payment_requests

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    if payment_requests.get_swish_client not in app.dependency_overrides:
        # bad merchant credentials (CredentialError) stop the service here
        payment_requests.build_swish_client()
    yield
    if payment_requests.build_swish_client.cache_info().currsize:
        await payment_requests.build_swish_client().aclose()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.include_router(payment_requests.router, tags=["Swish Payment Requests"])

@app.get("/health", tags=["Ops"])
async def health():
    return {"status": "ok"}
