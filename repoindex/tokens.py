import math

MODEL_CONTEXT_LIMITS: dict[str, int] = {
    "gpt-4o": 128000,
    "gpt-4o-mini": 128000,
    "gpt-4.1": 1047576,
    "gpt-4.1-mini": 1047576,
    "gpt-4.1-nano": 1047576,
}
DEFAULT_CONTEXT_LIMIT = 128000


def estimate_tokens(text: str) -> int:
    """Conservative token estimate: the larger of a chars/4 and a words*1.3 guess.

    Heuristic only; real tokenizers can count more, notably for non-Latin scripts.
    """
    trimmed = text.strip()
    if not trimmed:
        return 0
    char_estimate = math.ceil(len(trimmed) / 4)
    word_estimate = math.ceil(len(trimmed.split()) * 1.3)
    return max(char_estimate, word_estimate)


def get_model_context_limit(model: str) -> int:
    return MODEL_CONTEXT_LIMITS.get(model, DEFAULT_CONTEXT_LIMIT)


def calculate_available_tokens(
    model: str,
    prompt_tokens: int,
    completion_reserve: int = 2048,
    buffer: int = 512,
) -> int:
    context_limit = get_model_context_limit(model)
    return max(0, context_limit - prompt_tokens - completion_reserve - buffer)
