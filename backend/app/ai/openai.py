import httpx, json, re, logging
from app.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

class LLMError(RuntimeError):
    pass

def _headers():
    if not settings.openai_api_key:
        raise LLMError("OPENAI_API_KEY is not configured")
    return {"Content-Type": "application/json", "Authorization": f"Bearer {settings.openai_api_key}"}

async def _post(path: str, body: dict) -> dict:
    url = f"{settings.openai_base_url.rstrip('/')}/{path}"
    async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds) as client:
        r = await client.post(url, json=body, headers=_headers())
        r.raise_for_status()
        return r.json()

async def chat_completion(system: str, user: str, temperature: float = 0.2) -> str:
    body = {
        "model": settings.openai_model,
        "temperature": temperature,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
    }
    data = await _post("chat/completions", body)
    try:
        return data['choices'][0]['message']['content'] or ''
    except (KeyError, IndexError, TypeError) as e:
        raise LLMError(f"unexpected chat completion payload: {str(data)[:200]}") from e

async def create_response(content: list[dict], max_output_tokens: int = 256, temperature: float = 0.2) -> str:
    """Call the Responses API with one user turn and return the first output text."""
    body = {
        "model": settings.openai_model,
        "input": [{"role": "user", "content": content}],
        "max_output_tokens": max_output_tokens,
        "temperature": temperature,
    }
    data = await _post("responses", body)
    for item in data.get('output') or []:
        for part in item.get('content') or []:
            if part.get('text'):
                return part['text']
    raise LLMError(f"empty responses output: {str(data)[:200]}")

def strip_code_fences(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith('```'):
        cleaned = re.sub(r"^```[a-zA-Z]*\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned)
    return cleaned.strip()

def extract_json_object(raw: str) -> dict:
    """Parse the first ``{...}`` block of a model reply. Raises ValueError when there is none."""
    cleaned = strip_code_fences(raw)
    match = re.search(r"\{[\s\S]*\}", cleaned)
    if not match:
        raise ValueError("no JSON object in model reply")
    doc = json.loads(match.group(0))
    if not isinstance(doc, dict):
        raise ValueError("model reply is not a JSON object")
    return doc
