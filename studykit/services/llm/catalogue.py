from __future__ import annotations

from dataclasses import dataclass

GROQ = "groq"
OPENROUTER = "openrouter"
NVIDIA = "nvidia"
GEMINI = "gemini"

OPENROUTER_PREFIX = "or:"


@dataclass(frozen=True)
class ModelAlias:
    label: str
    name: str
    provider: str
    category: str  # all-rounder | fast | best | reasoning | coding | long-context | image
    description: str | None = None
    is_free: bool = False

    @property
    def model_id(self) -> str:
        """Concrete id sent on the wire (OpenRouter labels drop their `or:` prefix)."""
        if self.label.startswith(OPENROUTER_PREFIX):
            return self.label[len(OPENROUTER_PREFIX):]
        return self.label

    @property
    def is_text(self) -> bool:
        return self.category != "image"


AI_MODELS: tuple[ModelAlias, ...] = (
    # Groq
    ModelAlias("llama-3.1-8b-instant", "Llama 3.1 8B Instant", GROQ, "fast", "Fastest response, good for simple tasks"),
    ModelAlias("llama-3.3-70b-versatile", "Llama 3.3 70B Versatile", GROQ, "all-rounder", "Balanced performance and intelligence"),
    ModelAlias("meta-llama/llama-4-scout-17b-16e-instruct", "Llama 4 Scout", GROQ, "reasoning", "Advanced reasoning capabilities"),
    ModelAlias("meta-llama/llama-4-maverick-17b-128e-instruct", "Llama 4 Maverick", GROQ, "best", "Best quality model"),
    ModelAlias("qwen/qwen3-32b", "Qwen3 32B", GROQ, "reasoning"),
    ModelAlias("openai/gpt-oss-120b", "GPT OSS 120B", GROQ, "reasoning"),
    ModelAlias("moonshotai/kimi-k2-instruct-0905", "Kimi K2 (Groq)", GROQ, "long-context", "Good for long context"),
    # NVIDIA NIM
    ModelAlias("stabilityai/stable-diffusion-3.5-large", "Stable Diffusion 3.5 Large", NVIDIA, "image"),
    # OpenRouter (free tier)
    ModelAlias("or:mistralai/devstral-2-2512", "Devstral 2 2512", OPENROUTER, "coding", is_free=True),
    ModelAlias("or:tngtech/deepseek-r1t2-chimera", "DeepSeek R1T2 Chimera", OPENROUTER, "reasoning", is_free=True),
    ModelAlias("or:google/gemini-2.0-flash-exp:free", "Gemini 2.0 Flash (Free)", OPENROUTER, "fast", is_free=True),
    ModelAlias("or:moonshotai/kimi-k2-instruct-0711", "Kimi K2 0711", OPENROUTER, "long-context", "128K token context", is_free=True),
    ModelAlias("or:meta-llama/llama-3.1-8b-instruct:free", "Llama 3.1 8B Instruct (Free)", OPENROUTER, "fast", is_free=True),
)

DEFAULT_MODEL_ID = "llama-3.3-70b-versatile"

# hardcoded target of the single invalid-model retry
SAFE_FALLBACK_MODEL_ID = "or:meta-llama/llama-3.1-8b-instruct:free"

LEGACY_ALIASES = {
    "fast": "llama-3.1-8b-instant",
    "best": "llama-3.3-70b-versatile",
    "auto": DEFAULT_MODEL_ID,
}

_BY_LABEL = {m.label: m for m in AI_MODELS}


def get_model(label: str) -> ModelAlias | None:
    return _BY_LABEL.get(label)


def default_model() -> ModelAlias:
    return _BY_LABEL[DEFAULT_MODEL_ID]


def fallback_model() -> ModelAlias:
    return _BY_LABEL[SAFE_FALLBACK_MODEL_ID]


def text_models() -> list[ModelAlias]:
    return [m for m in AI_MODELS if m.is_text]
