from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rightsline.config import settings
from rightsline.db.database import init_db
from rightsline.logging_config import setup_logging
from rightsline.routes import posts, users, complaints

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup resources."""
    await init_db()
    yield


app = FastAPI(
    title='Rightsline API',
    description='Backend API for the Rightsline human-rights advocacy platform',
    version='0.1.0',
    lifespan=lifespan,
)

# CORS for the web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

# Routes
app.include_router(users.router, prefix='/api/users', tags=['users'])
app.include_router(posts.router, prefix='/api/posts', tags=['posts'])
app.include_router(complaints.router, prefix='/api/complaints', tags=['complaints'])


@app.get('/health')
async def health_check():
    """Health check endpoint."""
    return {'status': 'ok', 'service': 'rightsline-api'}
