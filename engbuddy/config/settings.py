"""Configuration settings for EngBuddy."""

import os
from pathlib import Path
from typing import Optional, Dict, Any, Union, Sequence
from dataclasses import dataclass
import json
import structlog
from dotenv import load_dotenv
import threading


logger = structlog.get_logger()


# Checked in order, first non-empty value wins.
CHAT_API_KEY_VARS = ("VITE_VAIT_API_KEY", "API_KEY", "GOOGLE_API_KEY")
SPEECH_API_KEY_VARS = ("ELEVENLABS_API_KEY",)


TUTOR_INSTRUCTION = """
당신은 한국의 중학교 학생들을 돕는 친절하고 유능한 영어 수행평가 튜터 'EngBuddy'입니다.
학생들이 영어 글쓰기(Writing)나 말하기(Speaking) 수행평가를 준비할 때 도움을 줍니다.

다음 원칙을 지켜주세요:
1. **친절하고 격려하는 말투**: 중학생이 부담을 느끼지 않도록 이모지를 적절히 사용하고 친근하게 대화하세요.
2. **명확한 교정**: 학생이 문장을 입력하면, 더 자연스러운 표현이나 문법적 오류를 수정해주고, **왜 틀렸는지 한국어로 쉽게 설명**해주세요. 단순히 정답만 주지 말고 학습이 되도록 도와주세요.
3. **주제 브레인스토밍**: 학생이 무엇을 써야 할지 모를 때, 중학생 수준에 맞는 흥미로운 주제(예: 나의 롤모델, 가장 기억에 남는 여행, 미래의 꿈 등)를 제안해주세요.
4. **수준별 맞춤**: 너무 어려운 단어보다는 중학교 교과 과정에 맞는 어휘를 주로 사용하되, 유용한 숙어도 알려주세요.
5. **구조 잡기**: 에세이 구조(서론-본론-결론)를 잡는 것을 도와주세요.

항상 답변은 Markdown 형식으로 가독성 있게 작성해주세요.
""".strip()

WELCOME_TEXT = (
    "안녕하세요! 저는 여러분의 영어 수행평가를 도와줄 EngBuddy입니다. 👋\n\n"
    "작문 교정, 주제 추천, 발음 연습 등 무엇이든 물어보세요!"
)


def resolve_credential(names: Sequence[str]) -> str:
    """Return the first non-empty environment value among names, or ''."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return ""


def pcm_sample_rate(output_format: str) -> int:
    """Sample rate encoded in a raw PCM format name such as ``pcm_24000``."""
    prefix, _, rate = output_format.partition("_")
    if prefix != "pcm" or not rate.isdigit():
        raise ValueError(f"Output format must be raw PCM, got {output_format}")
    return int(rate)


@dataclass
class SystemPrompts:
    """Fixed texts sent to or shown by the tutor."""
    default: str = TUTOR_INSTRUCTION
    welcome: str = WELCOME_TEXT


@dataclass
class Credentials:
    """API keys resolved at startup. Empty means not configured."""
    chat_api_key: str = ""
    speech_api_key: str = ""


@dataclass
class AudioSettings:
    """Synthesized speech format."""
    sample_rate: int = 24000
    channels: int = 1
    blocksize: int = 1024


@dataclass
class ProviderSettings:
    """Provider-specific settings."""
    # Gemini
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.7

    # ElevenLabs
    elevenlabs_voice_id: str = "pNInz6obpgDQGcFmaJgB"  # Adam voice
    elevenlabs_model_id: str = "eleven_flash_v2_5"
    elevenlabs_output_format: str = "pcm_24000"


@dataclass
class PlaybackSettings:
    """Playback lifecycle settings."""
    cooldown_seconds: float = 3.0
    wait_for_completion: bool = True


@dataclass
class TimeoutSettings:
    """Timeouts for outbound calls."""
    chat_timeout: float = 60.0  # seconds
    speech_timeout: float = 30.0  # seconds


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = "INFO"
    format: str = "json"
    file_enabled: bool = False
    file_rotation_mb: int = 10
    file_backup_count: int = 7


_SECTIONS = ("system_prompts", "audio", "providers", "playback", "timeouts", "logging")


class Settings:
    """Main settings class for EngBuddy."""

    def __init__(self, config_file: Optional[Union[str, Path]] = None,
                 load_env_file: bool = True):
        self.config_file = Path(config_file) if config_file else None
        self._lock = threading.RLock()
        self._env_loaded = not load_env_file

        self.chat_provider = "gemini"
        self.speech_provider = "elevenlabs"
        self.system_prompts = SystemPrompts()
        self.credentials = Credentials()
        self.audio = AudioSettings()
        self.providers = ProviderSettings()
        self.playback = PlaybackSettings()
        self.timeouts = TimeoutSettings()
        self.logging = LoggingSettings()

        # .env first so the environment pass below sees its values
        self._load_env_file()

        if self.config_file and self.config_file.exists():
            self.load_from_file()

        self.load_from_env()

    def _load_env_file(self) -> None:
        """Load environment variables from the nearest .env file."""
        if not self._env_loaded:
            current_dir = Path.cwd()
            for parent in [current_dir] + list(current_dir.parents):
                env_file = parent / ".env"
                if env_file.exists():
                    load_dotenv(env_file)
                    logger.debug("Loaded .env file", path=str(env_file))
                    break
            self._env_loaded = True

    def load_from_file(self) -> None:
        """Load settings from the JSON configuration file."""
        if not self.config_file or not self.config_file.exists():
            return

        try:
            with self._lock:
                with open(self.config_file, 'r', encoding="utf-8") as f:
                    config = json.load(f)

                for section in _SECTIONS:
                    target = getattr(self, section)
                    for key, value in config.get(section, {}).items():
                        if hasattr(target, key):
                            setattr(target, key, value)
                        else:
                            logger.warning("Ignoring unknown setting",
                                           section=section, key=key)

                self.chat_provider = config.get("chat_provider", self.chat_provider)
                self.speech_provider = config.get("speech_provider", self.speech_provider)

                logger.info("Loaded settings from file", file=str(self.config_file))

        except (OSError, ValueError) as e:
            logger.error("Failed to load settings from file",
                         file=str(self.config_file),
                         error=str(e))

    def load_from_env(self) -> None:
        """Load settings and credentials from environment variables."""
        with self._lock:
            self.credentials.chat_api_key = resolve_credential(CHAT_API_KEY_VARS)
            self.credentials.speech_api_key = resolve_credential(SPEECH_API_KEY_VARS)

            if os.getenv("CHAT_PROVIDER"):
                self.chat_provider = os.getenv("CHAT_PROVIDER")
            if os.getenv("SPEECH_PROVIDER"):
                self.speech_provider = os.getenv("SPEECH_PROVIDER")

            if os.getenv("GEMINI_MODEL"):
                self.providers.gemini_model = os.getenv("GEMINI_MODEL")
            if os.getenv("GEMINI_TEMPERATURE"):
                self.providers.gemini_temperature = float(os.getenv("GEMINI_TEMPERATURE"))

            if os.getenv("ELEVENLABS_VOICE_ID"):
                self.providers.elevenlabs_voice_id = os.getenv("ELEVENLABS_VOICE_ID")
            if os.getenv("ELEVENLABS_MODEL_ID"):
                self.providers.elevenlabs_model_id = os.getenv("ELEVENLABS_MODEL_ID")

            if os.getenv("CHAT_TIMEOUT"):
                self.timeouts.chat_timeout = float(os.getenv("CHAT_TIMEOUT"))
            if os.getenv("SPEECH_TIMEOUT"):
                self.timeouts.speech_timeout = float(os.getenv("SPEECH_TIMEOUT"))

            if os.getenv("PLAYBACK_COOLDOWN"):
                self.playback.cooldown_seconds = float(os.getenv("PLAYBACK_COOLDOWN"))

            if os.getenv("LOG_LEVEL"):
                self.logging.level = os.getenv("LOG_LEVEL").upper()
            if os.getenv("LOG_FORMAT"):
                self.logging.format = os.getenv("LOG_FORMAT")
            if os.getenv("LOG_FILE_ENABLED"):
                self.logging.file_enabled = os.getenv("LOG_FILE_ENABLED").lower() == "true"

    def get_provider_config(self, provider_type: str) -> Dict[str, Any]:
        """Get constructor arguments for a specific provider."""
        if provider_type == "gemini":
            return {
                "api_key": self.credentials.chat_api_key,
                "model_name": self.providers.gemini_model,
                "temperature": self.providers.gemini_temperature,
                "system_prompt": self.system_prompts.default,
                "timeout": self.timeouts.chat_timeout,
            }
        elif provider_type == "elevenlabs":
            return {
                "api_key": self.credentials.speech_api_key,
                "voice_id": self.providers.elevenlabs_voice_id,
                "model_id": self.providers.elevenlabs_model_id,
                "output_format": self.providers.elevenlabs_output_format,
                "channels": self.audio.channels,
                "timeout": self.timeouts.speech_timeout,
            }
        else:
            raise ValueError(f"Unknown provider type: {provider_type}")

    def reload(self) -> None:
        """Reload settings from file and environment."""
        with self._lock:
            if self.config_file and self.config_file.exists():
                self.load_from_file()
            self.load_from_env()
            logger.info("Settings reloaded")

    def validate(self) -> list[str]:
        """Validate current settings and return list of issues."""
        issues = []

        if self.audio.sample_rate not in [16000, 22050, 24000, 44100]:
            issues.append(f"Invalid sample rate: {self.audio.sample_rate}")
        if self.audio.channels not in [1, 2]:
            issues.append(f"Invalid channels: {self.audio.channels}")

        # Speech is decoded at the rate the format name promises
        output_format = self.providers.elevenlabs_output_format
        try:
            format_rate = pcm_sample_rate(output_format)
        except ValueError as e:
            issues.append(str(e))
        else:
            if format_rate != self.audio.sample_rate:
                issues.append(
                    f"Sample rate {self.audio.sample_rate} does not match "
                    f"speech output format {output_format}"
                )

        if not 0.0 <= self.providers.gemini_temperature <= 2.0:
            issues.append(f"Invalid temperature: {self.providers.gemini_temperature}")

        if self.timeouts.chat_timeout <= 0:
            issues.append(f"Invalid chat timeout: {self.timeouts.chat_timeout}")
        if self.timeouts.speech_timeout <= 0:
            issues.append(f"Invalid speech timeout: {self.timeouts.speech_timeout}")
        if self.playback.cooldown_seconds <= 0:
            issues.append(f"Invalid playback cooldown: {self.playback.cooldown_seconds}")

        if self.chat_provider not in ["gemini"]:
            issues.append(f"Unknown chat provider: {self.chat_provider}")
        if self.speech_provider not in ["elevenlabs"]:
            issues.append(f"Unknown speech provider: {self.speech_provider}")

        return issues

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary. Credentials are reported as set/unset only."""
        with self._lock:
            return {
                "chat_provider": self.chat_provider,
                "speech_provider": self.speech_provider,
                "credentials": {
                    "chat_api_key": bool(self.credentials.chat_api_key),
                    "speech_api_key": bool(self.credentials.speech_api_key),
                },
                "audio": vars(self.audio).copy(),
                "providers": vars(self.providers).copy(),
                "playback": vars(self.playback).copy(),
                "timeouts": vars(self.timeouts).copy(),
                "logging": vars(self.logging).copy(),
            }


# Default instance for the command line entry points
settings = Settings()
