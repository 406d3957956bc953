import asyncio
import json


def run_async(coro):
    """Helper to run async code from synchronous management commands."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def pretty_json(value) -> str:
    """Indented JSON with non-ASCII characters left as-is"""
    if isinstance(value, (str, bytes)):
        value = json.loads(value)
    return json.dumps(value, indent=2, ensure_ascii=False)
