# app/main.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from app.routers import auth, character, image, video, user, storage
from app.core.config import CORS_ALLOW_ORIGINS
from app.core.database import init_db
from app.core.errors import ErrorWithCode, error_with_code_handler, request_validation_handler
from app.core.logging_config import configure_logging

configure_logging()

app = FastAPI(title="Character Studio")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Every failure leaves as {"code": ..., "message": ...}
app.add_exception_handler(ErrorWithCode, error_with_code_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Include routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(user.router, prefix="/users", tags=["User"])
app.include_router(character.router, prefix="/characters", tags=["Character"])
app.include_router(image.router, prefix="/images", tags=["Image"])
app.include_router(video.router, prefix="/videos", tags=["Video"])
app.include_router(storage.router, prefix="/storage", tags=["Storage"])

# Initialize the database (create tables if needed)
init_db()

@app.get("/")
def read_root():
    return {"message": "Character Studio backend is running"}
