"""
LLM Helpers
Shared chat-model construction and JSON extraction for LLM-backed agents
"""

import json
import re
from typing import Any

from langchain_ollama import ChatOllama

from app.config import get_app_config


def get_llm(temperature: float = None) -> ChatOllama:
    """Build the chat model described by the `llm` section of the app config"""
    llm_config = get_app_config()['llm']

    kwargs = {
        'model': llm_config['model'],
        'temperature': llm_config['temperature'] if temperature is None else temperature,
    }
    if llm_config.get('base_url'):
        kwargs['base_url'] = llm_config['base_url']

    return ChatOllama(**kwargs)


def invoke_llm(prompt: str, temperature: float = None) -> str:
    """Send a single-turn prompt and return the response text"""
    response = get_llm(temperature).invoke(prompt)
    return (response.content or '').strip()


def extract_json(response_text: str, expect: str = 'object') -> Any:
    """
    Parse the JSON payload out of an LLM response

    Handles markdown code fences and leading/trailing chatter.

    Args:
        response_text: Raw LLM output
        expect: 'object' or 'array'

    Raises:
        json.JSONDecodeError / ValueError: no usable JSON in the response
    """
    text = (response_text or '').strip()

    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()

    opener, pattern = ('{', r'\{.*\}') if expect == 'object' else ('[', r'\[.*\]')

    if not text.startswith(opener):
        json_match = re.search(pattern, text, re.DOTALL)
        if not json_match:
            raise ValueError(f"No JSON {expect} found in LLM response")
        text = json_match.group(0)

    parsed = json.loads(text)

    expected_type = dict if expect == 'object' else list
    if not isinstance(parsed, expected_type):
        raise ValueError(f"Expected a JSON {expect}, got {type(parsed).__name__}")

    return parsed
