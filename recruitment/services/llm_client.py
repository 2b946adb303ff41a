from typing import List, Optional
import logging

import anyio.to_thread
from openai import OpenAI
from openai.types.chat import ChatCompletionMessageParam

from recruitment.config import settings
from recruitment.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

class OpenRouterClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, model: Optional[str] = None):
        self.api_key = settings.OPENROUTER_API_KEY if api_key is None else api_key
        if not self.api_key:
            raise ConfigurationError("OPENROUTER_API_KEY가 설정되지 않았습니다.")
        self.base_url = base_url or settings.OPENROUTER_BASE_URL
        self.model = model or settings.OPENROUTER_MODEL
        self.client = OpenAI(
            base_url=self.base_url,
            api_key=self.api_key,
            timeout=60.0,
        )

    async def chat_completion(
        self,
        messages: List[ChatCompletionMessageParam],
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 4000,
    ) -> Optional[str]:
        """채팅 완성 결과 원문을 반환합니다. 호출 실패 시 None."""
        headers = {
            "HTTP-Referer": settings.FASTAPI_SERVER_URL,
            "X-Title": "Recruitment Match"
        }

        def sync_call():
            completion = self.client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                extra_headers=headers,
            )
            return completion

        try:
            completion = await anyio.to_thread.run_sync(sync_call)
            return completion.choices[0].message.content
        except Exception as e:
            logger.error(f"OpenRouter API 호출 중 오류: {str(e)}")
            return None

# 전역 LLM 클라이언트 인스턴스 (최초 사용 시 생성)
_llm_client: Optional[OpenRouterClient] = None

def get_llm_client() -> OpenRouterClient:
    global _llm_client
    if _llm_client is None:
        _llm_client = OpenRouterClient()
    return _llm_client
