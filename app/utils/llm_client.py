import asyncio
import logging
import time
from typing import Dict, List, Optional

import openai

from app.config.settings import Settings

logger = logging.getLogger(__name__)


class LLMClient:
    """大模型客户端，封装 OpenAI 兼容接口的调用"""

    def __init__(self, config: Settings):
        self.api_key = config.LLM_API_KEY
        self.model = config.LLM_MODEL
        self.base_url = config.LLM_API_BASE
        self.max_tokens = config.LLM_MAX_TOKENS
        self.timeout = config.LLM_TIMEOUT

        self.client = openai.OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout
        )

        logger.info(f"LLM客户端初始化完成，模型: {self.model}")

    async def generate_response(self, messages: List[Dict[str, str]],
                                temperature: float = 0.7,
                                max_tokens: Optional[int] = None) -> str:
        """
        调用大模型生成响应

        Args:
            messages: 消息列表，格式为 [{"role": "user", "content": "你好"}]
            temperature: 生成温度
            max_tokens: 最大token数

        Returns:
            str: 模型生成的响应内容
        """
        logger.debug(f"调用LLM，消息数: {len(messages)}, 温度: {temperature}, 最大token数: {max_tokens or self.max_tokens}")

        try:
            start_time = time.time()
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(
                None,
                lambda: self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens or self.max_tokens,
                    stream=False
                )
            )

            content = response.choices[0].message.content or ""
            usage = response.usage

            elapsed_time = time.time() - start_time
            logger.debug(f"LLM调用成功: {len(content)}字符, "
                         f"耗时: {elapsed_time:.2f}s, "
                         f"Token使用: {usage.total_tokens if usage else 'N/A'}")
            return content

        except openai.APITimeoutError as e:
            logger.error(f"LLM调用超时: {e}")
            raise
        except openai.APIError as e:
            logger.error(f"LLM API错误: {e}")
            raise

    async def check_connection(self) -> bool:
        """检查与大模型的连接是否正常"""
        try:
            test_messages = [{"role": "user", "content": "Hello, respond with 'OK'"}]
            response = await self.generate_response(test_messages, max_tokens=10)
            return bool(response)
        except Exception as e:
            logger.error(f"大模型连接检查失败: {e}")
            return False


def create_llm_client(config: Settings) -> Optional[LLMClient]:
    """未配置 API Key 时返回 None（不生成AI总评）"""
    if not config.LLM_API_KEY:
        logger.info("未配置LLM_API_KEY，AI总评功能不可用")
        return None
    return LLMClient(config)
