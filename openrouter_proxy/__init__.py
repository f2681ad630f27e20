"""OpenRouter Proxy

A reverse proxy that forwards OpenAI-style requests to OpenRouter, injecting
provider routing hints derived from the requested model.
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("openrouter-proxy")
except PackageNotFoundError:
    # Running from a source checkout
    __version__ = "0.1.0"
