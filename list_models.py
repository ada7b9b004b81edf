"""
Script to list Gemini models that can serve classification requests
"""
from typing import List, Optional

import google.generativeai as genai

import config
from config import MODELS


def list_generate_models(api_key: str) -> List[str]:
    """Names of models that support generateContent, without the 'models/' prefix."""
    genai.configure(api_key=api_key)
    names = []
    for model in genai.list_models():
        if 'generateContent' in model.supported_generation_methods:
            names.append(model.name.split('/', 1)[-1])
    return names


def missing_configured_models(available: List[str]) -> List[str]:
    """Configured Gemini model ids that the API does not offer."""
    configured = [MODELS['gemini']['standard'], MODELS['gemini']['cheap']]
    return [name for name in configured if name not in available]


def main(api_key: Optional[str] = None) -> int:
    api_key = api_key or config.GEMINI_API_KEY
    if not api_key:
        print("Error: GEMINI_API_KEY environment variable not set")
        print("Please set it with: export GEMINI_API_KEY='your-key-here'")
        return 1

    print("Fetching available models...\n")
    try:
        available = list_generate_models(api_key)
    except Exception as e:
        print(f"Error listing models: {str(e)}")
        print("\nTroubleshooting:")
        print("1. Verify your API key is correct")
        print("2. Check your internet connection")
        print("3. Ensure the google-generativeai package is installed")
        return 1

    print("Available models that support generateContent:\n")
    for name in available:
        print(f"  - {name}")

    missing = missing_configured_models(available)
    if missing:
        print("\nConfigured models not offered by the API:")
        for name in missing:
            print(f"  - {name}")
        return 1

    print("\nConfigured models are available.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
