import asyncio
import io
import logging
import wave
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

from google import genai
from google.genai import types

from .config import settings

logger = logging.getLogger(__name__)

# Gemini TTS returns raw 16-bit mono PCM at 24 kHz.
TTS_SAMPLE_RATE = 24000
TTS_CHANNELS = 1
TTS_SAMPLE_WIDTH = 2

EXAMPLE_PROMPT = (
    'Create a simple, natural Japanese example sentence using the word "{word}" '
    "(Meaning: {meaning}). The sentence should be suitable for JLPT N1 learners. "
    "Return ONLY the Japanese sentence, no translations or explanations."
)


def pcm_to_wav(pcm: bytes) -> bytes:
    if len(pcm) % TTS_SAMPLE_WIDTH:
        pcm = pcm + b"\x00"
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(TTS_CHANNELS)
        wav.setsampwidth(TTS_SAMPLE_WIDTH)
        wav.setframerate(TTS_SAMPLE_RATE)
        wav.writeframes(pcm)
    return buffer.getvalue()


class ContentService:
    """
    Best-effort example sentence and speech generation through Gemini.

    Every public method returns ``None`` on failure and never raises, so a
    missing example or audio clip never interrupts a quiz. Successful results
    are memoized per input for the lifetime of the service.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        text_model: Optional[str] = None,
        tts_model: Optional[str] = None,
        voice: Optional[str] = None,
        client: Any = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.text_model = text_model or settings.GEMINI_TEXT_MODEL
        self.tts_model = tts_model or settings.GEMINI_TTS_MODEL
        self.voice = voice or settings.GEMINI_VOICE
        self._client = client
        self._examples: Dict[Tuple[str, str], str] = {}
        self._speech: Dict[str, bytes] = {}
        self._pending: Dict[Hashable, "asyncio.Future"] = {}

    @property
    def available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                return None
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _memoized(
        self,
        cache: Dict[Any, Any],
        key: Hashable,
        fetch: Callable[[], Awaitable[Optional[Any]]],
    ) -> Optional[Any]:
        """Return the cached result for ``key``, joining an in-flight request if any."""
        if key in cache:
            return cache[key]

        pending_key = (id(cache), key)
        task = self._pending.get(pending_key)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._pending[pending_key] = task

            def settle(done):
                self._pending.pop(pending_key, None)
                if not done.cancelled() and done.exception() is None:
                    result = done.result()
                    if result is not None:
                        cache[key] = result

            task.add_done_callback(settle)
        return await asyncio.shield(task)

    async def generate_example(self, written_form: str, meaning: str) -> Optional[str]:
        if self._get_client() is None:
            logger.warning("GEMINI_API_KEY is not set; example generation disabled.")
            return None
        return await self._memoized(
            self._examples,
            (written_form, meaning),
            lambda: self._request_example(written_form, meaning),
        )

    async def _request_example(self, written_form: str, meaning: str) -> Optional[str]:
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.text_model,
                contents=EXAMPLE_PROMPT.format(word=written_form, meaning=meaning),
            )
            sentence = (response.text or "").strip()
        except Exception as e:
            logger.error(f"Failed to generate example for {written_form}: {e}")
            return None

        if not sentence:
            logger.warning(f"Empty example returned for {written_form}")
            return None
        return sentence

    async def synthesize_speech(self, text: str) -> Optional[bytes]:
        if not text:
            return None
        if self._get_client() is None:
            logger.warning("GEMINI_API_KEY is not set; speech synthesis disabled.")
            return None
        return await self._memoized(self._speech, text, lambda: self._request_speech(text))

    async def _request_speech(self, text: str) -> Optional[bytes]:
        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.tts_model,
                contents=text,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(
                                voice_name=self.voice
                            )
                        )
                    ),
                ),
            )
            pcm = response.candidates[0].content.parts[0].inline_data.data
        except Exception as e:
            logger.error(f"Error synthesizing speech: {e}")
            return None

        if not pcm:
            logger.warning("No audio data returned from Gemini API")
            return None
        return pcm_to_wav(pcm)

    async def aclose(self):
        """Close the async Gemini transport and drop cached content."""
        client, self._client = self._client, None
        self._examples.clear()
        self._speech.clear()
        self._pending.clear()
        aio = getattr(client, "aio", None) if client is not None else None
        if aio is not None and hasattr(aio, "aclose"):
            try:
                await aio.aclose()
            except Exception as e:
                logger.warning(f"Failed to close Gemini client: {e}")
