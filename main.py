import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coach.router import router as coach_router
from tts_service import router as tts_router
from account_service import router as account_router

# Logger configuration
logging.basicConfig(level=logging.INFO)

# Start the FastAPI application
app = FastAPI(
    title="Running Coach Service",
    description="Real-time and post-run coach feedback, training plans, TTS and account relays for the running app.",
    version="1.0.0"
)

# CORS settings (mobile app and web preview call every endpoint directly)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Attach routers
app.include_router(coach_router)
app.include_router(tts_router)
app.include_router(account_router)


@app.get("/")
async def health_check():
    """
    Service health check
    """
    return {
        "status": "healthy",
        "service": "Running Coach Service",
        "version": "1.0.0"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
