import base64, logging
from app.ai.openai import create_response

logger = logging.getLogger(__name__)

MAX_FRAMES = 3
MAX_IMAGE_TAGS = 10

TAG_INSTRUCTION = """다음 이미지들에서 공통적인 주제를 잘 설명하는 한글 태그를 최대 10개까지만 뽑아줘.
형식은 "태그1, 태그2, 태그3" 처럼 콤마로 구분된 한 줄 텍스트로만 답변해.
설명 문장은 쓰지 마."""

def _data_url(path: str) -> str:
    with open(path, 'rb') as f:
        return "data:image/jpeg;base64," + base64.b64encode(f.read()).decode('ascii')

def split_tag_line(text: str) -> list[str]:
    tags = []
    for piece in text.replace('\n', ',').split(','):
        t = piece.strip()
        if t and t not in tags:
            tags.append(t)
    return tags

async def tags_for_frames(frame_paths: list[str]) -> list[str]:
    """Ask the vision model for Korean tags describing the first few frames.

    Raises on transport errors; an empty frame list yields no tags.
    """
    if not frame_paths:
        logger.warning("no frames to tag")
        return []
    content = [{"type": "input_text", "text": TAG_INSTRUCTION}]
    for path in frame_paths[:MAX_FRAMES]:
        content.append({"type": "input_image", "image_url": _data_url(path)})
    text = await create_response(content)
    tags = split_tag_line(text)[:MAX_IMAGE_TAGS]
    logger.info("image tags: %s", tags)
    return tags
