from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from typing import Optional
import logging
import requests

from config import Settings
from coach.schemas import TTSRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["TTS"])

# Qwen3-TTS-Flash voices (international endpoint)
VOICE_MAP = {
    "cherry": "Cherry",      # female, clear
    "jennifer": "Jennifer",  # female, soft
    "ethan": "Ethan",        # male, steady
}
DEFAULT_VOICE = "Cherry"


class TTSError(Exception):
    """Speech synthesis or audio download failed."""


def resolve_voice(voice: Optional[str]) -> str:
    """App voice id -> provider voice name, Cherry when unknown."""
    if not voice:
        return DEFAULT_VOICE
    return VOICE_MAP.get(voice.strip().lower(), DEFAULT_VOICE)


class TTSClient:
    """
    DashScope speech synthesis.
    The API answers with an audio URL, which is then downloaded.
    """

    def __init__(self, api_key: Optional[str], model: str = Settings.TTS_MODEL,
                 url: str = Settings.DASHSCOPE_TTS_URL, timeout: float = Settings.HTTP_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def synthesize(self, text: str, voice: str) -> bytes:
        if not self.api_key:
            raise TTSError("DASHSCOPE_API_KEY not configured")

        try:
            response = self.session.post(
                self.url,
                json={
                    "model": self.model,
                    "input": {
                        "text": text,
                        "voice": voice,
                        "language_type": "Chinese",
                    },
                },
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TTSError(f"TTS request failed: {e}") from e

        if not response.ok:
            logger.error(f"TTS API error: {response.text[:500]}")
            raise TTSError(f"TTS API failed: {response.status_code}")

        try:
            data = response.json()
            audio_url = data["output"]["audio"]["url"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Unexpected TTS response: {response.text[:500]}")
            raise TTSError("TTS API returned an unexpected format") from e

        if not audio_url:
            raise TTSError("TTS API returned an empty audio URL")

        logger.info(f"Downloading audio: {audio_url[:80]}...")
        try:
            audio = self.session.get(audio_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TTSError(f"Audio download failed: {e}") from e
        if not audio.ok:
            raise TTSError(f"Audio download failed: {audio.status_code}")

        return audio.content


def get_tts_client() -> TTSClient:
    return TTSClient(Settings.DASHSCOPE_API_KEY)


@router.post("/tts-coach")
async def tts_coach(request: TTSRequest, client: TTSClient = Depends(get_tts_client)):
    """
    Converts coach text to WAV audio.
    """
    text = request.text or ""
    if not text.strip():
        return JSONResponse(status_code=400, content={"error": "Text must not be empty"})

    voice = resolve_voice(request.voice)
    logger.info(f"TTS request: text=\"{text[:30]}...\", voice={voice}")

    try:
        audio = await run_in_threadpool(client.synthesize, text, voice)
    except TTSError as e:
        logger.error(f"TTS generation failed: {e}")
        return JSONResponse(status_code=500, content={"error": str(e), "fallback": True})

    logger.info(f"TTS generated: {len(audio)} bytes")
    return Response(content=audio, media_type="audio/wav")
