from chat.upstream.gemini import GeminiClient

__all__ = ["GeminiClient"]
