# DEPENDENCIES
import sys
import json
import time
import openai
import threading
import requests
from enum import Enum
from typing import Any
from typing import Dict
from typing import List
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

# Add parent directory to path for imports
sys.path.append(str(Path(__file__).parent.parent))

from utils.logger import log_info
from utils.logger import log_error
from config.settings import settings
from config.model_config import ModelConfig
from utils.logger import StatuteAnalyzerLogger


# Optional provider SDK
try:
    import anthropic
    ANTHROPIC_AVAILABLE = True

except ImportError:
    ANTHROPIC_AVAILABLE = False


class LLMProvider(Enum):
    """
    Supported text-generation providers
    """
    OLLAMA    = "ollama"
    OPENAI    = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class LLMResponse:
    """
    Provider-independent completion result
    """
    text            : str
    provider        : str
    model           : str
    tokens_used     : int
    latency_seconds : float
    success         : bool
    error_message   : Optional[str] = None


    def to_dict(self) -> Dict[str, Any]:
        return {"text"            : self.text,
                "provider"        : self.provider,
                "model"           : self.model,
                "tokens_used"     : self.tokens_used,
                "latency_seconds" : round(self.latency_seconds, 3),
                "success"         : self.success,
                "error_message"   : self.error_message,
               }


class LLMManager:
    """
    Text generation over Ollama (local), OpenAI or Anthropic, used for optional explanation enrichment
    """
    def __init__(self, default_provider: Optional[LLMProvider] = None, ollama_base_url: Optional[str] = None, openai_api_key: Optional[str] = None,
                 anthropic_api_key: Optional[str] = None, openai_client = None, anthropic_client = None):
        """
        Initialize LLM Manager

        Arguments:
        ----------
            default_provider  : Provider used when complete() is not told otherwise (default: settings.LLM_PROVIDER)

            ollama_base_url   : Ollama server URL

            openai_api_key    : OpenAI API key (default: settings.OPENAI_API_KEY)

            anthropic_api_key : Anthropic API key (default: settings.ANTHROPIC_API_KEY)

            openai_client     : Pre-built OpenAI client (tests)

            anthropic_client  : Pre-built Anthropic client (tests)
        """
        self.default_provider  = default_provider or LLMProvider(settings.LLM_PROVIDER)
        self.generation_config = ModelConfig.LLM_GENERATION

        self.ollama_base_url   = ollama_base_url or settings.OLLAMA_BASE_URL
        self.ollama_model      = settings.OLLAMA_MODEL
        self.ollama_timeout    = settings.OLLAMA_TIMEOUT

        self.openai_api_key    = openai_api_key or settings.OPENAI_API_KEY
        self.openai_client     = openai_client

        if (self.openai_client is None) and self.openai_api_key:
            self.openai_client = openai.OpenAI(api_key = self.openai_api_key)

        self.anthropic_api_key = anthropic_api_key or settings.ANTHROPIC_API_KEY
        self.anthropic_client  = anthropic_client

        if (self.anthropic_client is None) and ANTHROPIC_AVAILABLE and self.anthropic_api_key:
            self.anthropic_client = anthropic.Anthropic(api_key = self.anthropic_api_key)

        # Simple token bucket, shared by the request threads
        self._rate_limit_lock        = threading.Lock()
        self._rate_limit_tokens      = 10.0
        self._rate_limit_capacity    = 10.0
        self._rate_limit_refill_rate = 1.0
        self._rate_limit_last_refill = time.time()

        log_info("LLMManager initialized",
                 default_provider    = self.default_provider.value,
                 openai_available    = self.openai_client is not None,
                 anthropic_available = self.anthropic_client is not None,
                )


    def is_available(self, provider: Optional[LLMProvider] = None) -> bool:
        """
        Whether a provider has what it needs to be called (Ollama is assumed reachable if configured)
        """
        provider = provider or self.default_provider

        if (provider == LLMProvider.OPENAI):
            return self.openai_client is not None

        if (provider == LLMProvider.ANTHROPIC):
            return self.anthropic_client is not None

        return bool(self.ollama_base_url)


    def _wait_for_rate_limit(self):
        while True:
            with self._rate_limit_lock:
                now                          = time.time()
                elapsed                      = now - self._rate_limit_last_refill
                self._rate_limit_tokens      = min(self._rate_limit_capacity, self._rate_limit_tokens + elapsed * self._rate_limit_refill_rate)
                self._rate_limit_last_refill = now

                if (self._rate_limit_tokens >= 1):
                    self._rate_limit_tokens -= 1
                    return

            time.sleep(0.5)


    @StatuteAnalyzerLogger.log_execution_time("llm_complete")
    def complete(self, prompt: str, provider: Optional[LLMProvider] = None, model: Optional[str] = None, temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None, system_prompt: Optional[str] = None, json_mode: bool = False,
                 fallback_providers: Optional[List[LLMProvider]] = None) -> LLMResponse:
        """
        Complete a prompt with one provider, trying fallbacks in order when it fails

        Returns:
        --------
            { LLMResponse } : success=False with the error message when every provider failed
        """
        providers   = [provider or self.default_provider] + [p for p in (fallback_providers or []) if p != (provider or self.default_provider)]
        temperature = self.generation_config["temperature"] if temperature is None else temperature
        max_tokens  = max_tokens or self.generation_config["max_tokens"]
        last_error  = None

        self._wait_for_rate_limit()

        for current in providers:
            try:
                if (current == LLMProvider.OLLAMA):
                    return self._complete_ollama(prompt, model, temperature, max_tokens, system_prompt, json_mode)

                if (current == LLMProvider.OPENAI):
                    return self._complete_openai(prompt, model, temperature, max_tokens, system_prompt, json_mode)

                if (current == LLMProvider.ANTHROPIC):
                    return self._complete_anthropic(prompt, model, temperature, max_tokens, system_prompt)

                raise ValueError(f"Unsupported provider: {current}")

            except Exception as e:
                last_error = e
                log_error(e, context = {"component" : "LLMManager", "operation" : "complete", "provider" : current.value})

        return LLMResponse(text            = "",
                           provider        = providers[0].value,
                           model           = model or "unknown",
                           tokens_used     = 0,
                           latency_seconds = 0.0,
                           success         = False,
                           error_message   = str(last_error),
                          )


    def _default_model(self, provider: LLMProvider) -> str:
        return settings.LLM_MODEL or self.generation_config["model"][provider.value]


    def _complete_ollama(self, prompt: str, model: Optional[str], temperature: float, max_tokens: int, system_prompt: Optional[str], json_mode: bool) -> LLMResponse:
        start_time = time.time()
        model      = model or self.ollama_model

        payload    = {"model"   : model,
                      "prompt"  : prompt,
                      "stream"  : False,
                      "options" : {"temperature" : temperature, "num_predict" : max_tokens},
                     }

        if system_prompt:
            payload["system"] = system_prompt

        if json_mode:
            payload["format"] = "json"

        response   = requests.post(f"{self.ollama_base_url}/api/generate", json = payload, timeout = self.ollama_timeout)
        response.raise_for_status()

        result     = response.json()
        text       = result.get("response", "")
        tokens     = int(result.get("prompt_eval_count", 0)) + int(result.get("eval_count", 0))

        return LLMResponse(text            = text,
                           provider        = LLMProvider.OLLAMA.value,
                           model           = model,
                           tokens_used     = tokens,
                           latency_seconds = time.time() - start_time,
                           success         = True,
                          )


    def _complete_openai(self, prompt: str, model: Optional[str], temperature: float, max_tokens: int, system_prompt: Optional[str], json_mode: bool) -> LLMResponse:
        if self.openai_client is None:
            raise ValueError("OpenAI not configured: set OPENAI_API_KEY")

        start_time = time.time()
        model      = model or self._default_model(LLMProvider.OPENAI)
        messages   = list()

        if system_prompt:
            messages.append({"role" : "system", "content" : system_prompt})

        messages.append({"role" : "user", "content" : prompt})

        params     = {"model"       : model,
                      "messages"    : messages,
                      "temperature" : temperature,
                      "max_tokens"  : max_tokens,
                     }

        if json_mode:
            params["response_format"] = {"type" : "json_object"}

        response   = self.openai_client.chat.completions.create(**params)
        usage      = getattr(response, "usage", None)

        return LLMResponse(text            = response.choices[0].message.content or "",
                           provider        = LLMProvider.OPENAI.value,
                           model           = model,
                           tokens_used     = getattr(usage, "total_tokens", 0) or 0,
                           latency_seconds = time.time() - start_time,
                           success         = True,
                          )


    def _complete_anthropic(self, prompt: str, model: Optional[str], temperature: float, max_tokens: int, system_prompt: Optional[str]) -> LLMResponse:
        if self.anthropic_client is None:
            raise ValueError("Anthropic not available. Install with: pip install anthropic")

        start_time = time.time()
        model      = model or self._default_model(LLMProvider.ANTHROPIC)

        message    = self.anthropic_client.messages.create(model       = model,
                                                           max_tokens  = max_tokens,
                                                           temperature = temperature,
                                                           system      = system_prompt or "",
                                                           messages    = [{"role" : "user", "content" : prompt}],
                                                          )

        return LLMResponse(text            = message.content[0].text,
                           provider        = LLMProvider.ANTHROPIC.value,
                           model           = model,
                           tokens_used     = message.usage.input_tokens + message.usage.output_tokens,
                           latency_seconds = time.time() - start_time,
                           success         = True,
                          )


    def generate_structured_json(self, prompt: str, schema_description: str, provider: Optional[LLMProvider] = None, **kwargs) -> Dict[str, Any]:
        """
        Complete a prompt and parse the reply as a JSON object

        Arguments:
        ----------
            prompt             : User prompt

            schema_description : Description of the expected JSON keys

            provider           : LLM provider

            **kwargs           : Additional arguments for complete()

        Returns:
        --------
               { dict }        : Parsed JSON object

        Raises:
        -------
            ValueError         : If completion failed or the reply is not a JSON object
        """
        system_prompt = (f"You are a legal analysis assistant that returns valid JSON.\n"
                         f"Expected schema:\n{schema_description}\n\n"
                         f"Return ONLY valid JSON, no markdown, no explanation."
                        )

        response      = self.complete(prompt        = prompt,
                                      provider      = provider,
                                      system_prompt = system_prompt,
                                      json_mode     = True,
                                      **kwargs,
                                     )

        if not response.success:
            raise ValueError(f"LLM completion failed: {response.error_message}")

        text          = response.text.strip().replace("```json", "").replace("```", "").strip()

        try:
            parsed = json.loads(text)

        except json.JSONDecodeError as e:
            log_error(e, context = {"component" : "LLMManager", "operation" : "parse_json", "response_text" : response.text[:500]})
            raise ValueError(f"Failed to parse JSON response: {e}")

        if not isinstance(parsed, dict):
            raise ValueError("LLM response is not a JSON object")

        return parsed
