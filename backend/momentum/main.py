from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from momentum.api.profiles import router as profiles_router
from momentum.api.workouts import router as workouts_router
from momentum.api.streaks import router as streaks_router
from momentum.db import Base, SessionLocal, engine
from momentum.models.profile import Profile  # noqa: F401  (import ensures table is registered)
from momentum.models.workout_log import WorkoutLog  # noqa: F401
from momentum.core.logger import logger
from momentum.services.persistence import SqlAlchemyPersistence
from momentum.services.streak_service import StreakService


app = FastAPI(title="momentum")

# Allow CORS for the mobile app / local frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables (profiles, workout_logs) on startup
Base.metadata.create_all(bind=engine)

# One store adapter and one streak service per process, injected into routes
persistence = SqlAlchemyPersistence(SessionLocal)
streak_service = StreakService(persistence)
streak_service.watch()
app.state.persistence = persistence
app.state.streak_service = streak_service

app.include_router(profiles_router)
app.include_router(workouts_router)
app.include_router(streaks_router)

logger.info("Momentum backend ready")


@app.get("/")
def root():
    return {"message": "Momentum backend is running"}
