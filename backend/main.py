from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from infra.database.connection import init_db, close_db, new_session
from api.routers import board, gigs, songs, system
from utils.seeding import seed_demo_data

from config import settings

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()  # Raw SQL によるテーブル作成 + Alembic
    if settings.SEED_DEMO_DATA:
        with new_session() as session:
            seed_demo_data(session)
    yield
    close_db()

app = FastAPI(title="SetlistFlow Backend API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"message": "SetlistFlow Backend API is running"}

app.include_router(gigs.router)
app.include_router(songs.router)
app.include_router(board.router)
app.include_router(system.router)
