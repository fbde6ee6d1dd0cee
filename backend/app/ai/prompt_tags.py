import logging
from dataclasses import dataclass, field
from app.ai.openai import chat_completion, extract_json_object

logger = logging.getLogger(__name__)

MAX_PROMPT_TAGS = 12

SYSTEM_PROMPT = """너는 '영상'을 찾기 위한 태그 추출기이다.
사용자가 원하는 영상을 자연어로 설명하면, 아래 JSON 형식만 반환해라.

{
  "intentSummary": "사용자가 찾는 영상 내용을 한 문장으로 요약 (한국어)",
  "tags": ["짧은 키워드1", "짧은 키워드2", ...]
}

규칙:
- tags는 최대 12개까지.
- 각 태그는 1~3단어짜리 짧은 키워드로(예: "RAG", "PyTorch", "Transformer", "입문", "실습", "강의").
- 따옴표, 줄바꿈 등으로 인해 JSON이 깨지지 않게 주의해라.
- JSON 이외의 텍스트는 절대 출력하지 말 것."""

@dataclass
class PromptAnalysis:
    intent_summary: str
    tags: list[str] = field(default_factory=list)

async def analyze_prompt(prompt: str) -> PromptAnalysis:
    """Turn a free-text prompt into an intent summary plus short tag keywords.

    Never raises: any transport, parse or schema problem yields ``(prompt, [])``.
    """
    try:
        raw = await chat_completion(SYSTEM_PROMPT, prompt)
        doc = extract_json_object(raw)
        summary = doc.get('intentSummary')
        raw_tags = doc.get('tags')
        if not isinstance(raw_tags, list):
            raise ValueError("tags is not a list")
        tags = []
        for t in raw_tags:
            if t is None:
                continue
            text = str(t).strip()
            if text and text not in tags:
                tags.append(text)
        intent = summary.strip() if isinstance(summary, str) and summary.strip() else prompt
        logger.info("prompt analysed intent=%r tags=%s", intent, tags[:MAX_PROMPT_TAGS])
        return PromptAnalysis(intent_summary=intent, tags=tags[:MAX_PROMPT_TAGS])
    except Exception:
        logger.exception("prompt analysis failed; continuing without tags")
        return PromptAnalysis(intent_summary=prompt, tags=[])
