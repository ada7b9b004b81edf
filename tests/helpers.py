"""Response builders shared by provider and pipeline tests."""

import json
from unittest.mock import Mock


def make_response(status_code=200, body=None):
    """Create a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    if isinstance(body, (dict, list)):
        response.json.return_value = body
        response.text = json.dumps(body)
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = body or ""
    return response


def openai_body(content, prompt_tokens=10, completion_tokens=5):
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    }


def anthropic_body(text, input_tokens=10, output_tokens=5):
    return {
        "content": [{"type": "text", "text": text}],
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }


def gemini_body(text, prompt_tokens=10, candidate_tokens=5):
    return {
        "candidates": [{"content": {"parts": [{"text": text}]}}],
        "usageMetadata": {"promptTokenCount": prompt_tokens, "candidatesTokenCount": candidate_tokens},
    }
