"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
See .env.example for the available variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FALLBACK_PHRASE = "Sorry, I had a small hiccup. Can you say that again?"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    groq_api_key: SecretStr | None = Field(default=None, description="Groq API key for LLM")
    openai_api_key: SecretStr | None = Field(
        default=None, description="OpenAI API key for LLM and fallback TTS"
    )
    deepgram_api_key: SecretStr | None = Field(
        default=None, description="Deepgram API key for STT and Aura TTS"
    )
    elevenlabs_api_key: SecretStr | None = Field(
        default=None, description="ElevenLabs API key for TTS"
    )

    # ==========================================================================
    # Telephony
    # ==========================================================================
    plivo_auth_id: str | None = Field(default=None, description="Plivo Auth ID")
    plivo_auth_token: SecretStr | None = Field(default=None, description="Plivo Auth Token")
    plivo_phone_number: str | None = Field(
        default=None, description="Plivo number used as caller ID for outbound calls"
    )
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL used to build the stream WebSocket URL",
    )
    stream_audio_profile: Literal["narrowband", "wideband"] = Field(
        default="narrowband",
        description="Audio profile of the call stream (mulaw 8kHz or linear16 16kHz)",
    )

    # ==========================================================================
    # Reasoning engine
    # ==========================================================================
    llm_provider: Literal["groq", "openai", "ollama"] | None = Field(
        default=None,
        description="Preferred LLM provider (defaults to first configured)",
    )
    groq_chat_model: str = Field(default="llama-3.3-70b-versatile")
    openai_chat_model: str = Field(default="gpt-4o-mini")
    ollama_chat_model: str = Field(default="llama3.2")
    ollama_base_url: str = Field(default="http://localhost:11434/v1")
    llm_max_tokens: int = Field(default=150, description="Max tokens per reply (keep low for voice)")
    llm_temperature: float = Field(default=0.7)

    # ==========================================================================
    # Speech
    # ==========================================================================
    deepgram_stt_model: str = Field(default="nova-2")
    stt_language: str = Field(default="en")
    deepgram_tts_model: str = Field(default="aura-asteria-en")
    elevenlabs_voice_id: str = Field(default="21m00Tcm4TlvDq8ikWAM")
    elevenlabs_model_id: str = Field(default="eleven_monolingual_v1")
    openai_tts_model: str = Field(default="tts-1")
    openai_tts_voice: str = Field(default="alloy")

    # ==========================================================================
    # Call behaviour
    # ==========================================================================
    bot_vertical: str = Field(default="sales", description="Default business vertical")
    custom_verticals_path: str | None = Field(
        default="config/custom-verticals.json",
        description="Optional JSON file with custom verticals",
    )
    silence_timeout_seconds: float = Field(
        default=4.0, gt=0, description="Seconds without audio before the session is idle"
    )
    max_turn_duration_seconds: float = Field(
        default=30.0, gt=0, description="Upper bound on one agent response attempt"
    )
    fallback_phrase: str = Field(
        default=DEFAULT_FALLBACK_PHRASE,
        description="Spoken when reasoning or synthesis fails",
    )
    max_concurrent_calls: int = Field(default=10, ge=1)

    # ==========================================================================
    # Application
    # ==========================================================================
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # ==========================================================================
    # Derived Properties
    # ==========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Use dependency injection in FastAPI:
        settings: Settings = Depends(get_settings)
    """
    return Settings()
