"""
LLM Client — interface for talking to the xAI (Grok) model.

Key concepts:
    - System prompt: Sets the model's role and behavior (constant per task).
    - User prompt: The actual question or data (changes per call).
    - Temperature: 0 = deterministic, 1 = creative. Low for analysis.
    - Structured output: JSON format for machine-readable responses.

Every AI feature in the forum is optional, so this client never raises:
no key, a network error, or garbage output all come back as None.
"""

import json
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from peerpath import config


def is_configured() -> bool:
    """True when an API key is available."""
    return bool(config.XAI_API_KEY)


def get_client() -> OpenAI:
    """Create an OpenAI client pointed at xAI's server."""
    return OpenAI(api_key=config.XAI_API_KEY, base_url=config.XAI_BASE_URL)


def call_llm(
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.1,
    model: Optional[str] = None,
    expect_json: bool = True,
) -> Optional[Any]:
    """
    Send a prompt to the LLM and get a response.

    Returns:
        Parsed JSON if expect_json=True, raw string otherwise.
        None if the key is missing, the request fails, or the JSON is invalid.
    """
    if not is_configured():
        print("Warning: XAI_API_KEY is not set. Skipping AI call.")
        return None

    try:
        client = get_client()
        response = client.chat.completions.create(
            model=model or config.LLM_MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"} if expect_json else None,
        )
        raw_text = response.choices[0].message.content
    except (OpenAIError, IndexError, AttributeError) as e:
        print(f"Warning: LLM request failed: {e}")
        return None

    if raw_text is None:
        print("Warning: LLM returned an empty response.")
        return None

    if expect_json:
        try:
            return json.loads(raw_text)
        except json.JSONDecodeError:
            print(f"Warning: LLM did not return valid JSON. Raw response:\n{raw_text[:500]}")
            return None

    return raw_text
