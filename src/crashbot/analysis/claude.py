"""Claude API integration for crash log analysis."""

import json
import logging
from typing import Any, Optional

from anthropic import AsyncAnthropic

from ..exceptions import StrategyError, StrategyUnavailable
from .models import ClassificationResult
from .strategy import ClassificationStrategy

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are CrashBot, an AI assistant specialized in analyzing FiveM crash logs for a GTA V role-play community.

Your expertise includes:
- FiveM client crashes and their causes
- GTA V game engine errors
- Lua scripting errors in FiveM resources
- Graphics driver issues (NVIDIA, AMD)
- Memory-related crashes
- Server resource conflicts
- Asset streaming errors (YFT, YDR, TXD files)
- Framework errors (ESX, QBCore, VORP)
- Native function errors

When analyzing crash logs:
1. Identify the PRIMARY cause of the crash
2. Determine if it's a CLIENT issue (user's computer) or RESOURCE issue (server-side script)
3. For RESOURCE issues, try to identify the specific resource name from the log
4. Provide clear, actionable solutions
5. Be friendly and helpful

Response format:
- crash_type: "client" | "resource" | "unknown"
- resource_name: string or null (if resource issue, extract the resource name)
- cause: Brief title of the crash cause
- description: Detailed explanation of what happened
- solutions: Array of step-by-step solutions
- severity: "low" | "medium" | "high"
- auto_reported: boolean (true if this is a resource issue that should be logged)

Common FiveM crash locations:
- AppData/Local/FiveM/FiveM.app/crashes - crash dumps
- AppData/Local/FiveM/FiveM.app/logs - log files
- citizen-resources - resource errors

Always be encouraging and let users know that resource issues will be automatically reported to the development team."""

USER_PROMPT = """Please analyze this FiveM crash log and provide your analysis in JSON format:

```
{crash_log}
```

Respond ONLY with valid JSON in this exact format:
{{
    "crash_type": "client" | "resource" | "unknown",
    "resource_name": "resource_name_here" or null,
    "cause": "Brief title",
    "description": "Detailed explanation",
    "solutions": ["Solution 1", "Solution 2", "Solution 3"],
    "severity": "low" | "medium" | "high",
    "auto_reported": true or false
}}"""


def get_client(api_key: str, timeout: float = 60.0) -> Optional[AsyncAnthropic]:
    """Get Anthropic client if an API key is configured."""
    if not api_key:
        return None
    return AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)


def _balanced_span(text: str, start: int) -> Optional[str]:
    """Return the balanced {...} span opening at start, or None."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return None


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} span in text holding a JSON object.

    Braces inside JSON string literals are ignored. A scan that does not
    yield an object restarts at the next "{", so stray braces or quotes
    in surrounding prose do not hide the payload.
    """
    start = text.find("{")
    while start != -1:
        span = _balanced_span(text, start)
        if span is not None:
            try:
                if isinstance(json.loads(span), dict):
                    return span
            except json.JSONDecodeError:
                pass
        start = text.find("{", start + 1)

    return None


def parse_analysis(response_text: str) -> ClassificationResult:
    """Turn a model reply into a ClassificationResult.

    Replies without a JSON object become the fixed "Analysis Error"
    result with the reply kept for debugging.
    """
    candidate = extract_json_object(response_text)
    if candidate is None:
        logger.warning("No JSON object found in Claude response")
        return ClassificationResult.analysis_error(response_text)

    return ClassificationResult.from_payload(json.loads(candidate))


def _response_text(response: Any) -> str:
    return "".join(
        block.text for block in response.content
        if getattr(block, "type", None) == "text"
    )


class ClaudeStrategy(ClassificationStrategy):
    """Primary classifier backed by the Anthropic Messages API."""

    name = "claude"

    def __init__(
        self,
        api_key: str = "",
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 1024,
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.client = client if client is not None else get_client(api_key, timeout)

    @classmethod
    def from_config(cls, config) -> "ClaudeStrategy":
        return cls(
            api_key=config.anthropic_api_key,
            model=config.anthropic_model,
            max_tokens=config.anthropic_max_tokens,
            timeout=config.llm_timeout,
        )

    @property
    def available(self) -> bool:
        return self.client is not None

    async def classify(self, log_text: str) -> ClassificationResult:
        if not self.available:
            raise StrategyUnavailable("Claude API key not configured")

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": USER_PROMPT.format(crash_log=log_text)}
                ],
            )
        except Exception as e:
            logger.error(f"Claude API error: {e}")
            raise StrategyError(f"Claude API error: {e}") from e

        return parse_analysis(_response_text(response))
