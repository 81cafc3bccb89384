"""
Notion HTTP API 网关
只负责带鉴权的请求/响应编组，不做重试
"""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from app.config.settings import Settings

logger = logging.getLogger(__name__)

# Notion 单次查询最多返回的页面数
NOTION_MAX_PAGE_SIZE = 100


class NotionAPIError(Exception):
    """Notion 调用失败（网络、鉴权、不存在等）"""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"Notion API 错误 {status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


def format_notion_id(raw_id: Optional[str]) -> Optional[str]:
    """将32位无连字符ID转换为 Notion 的 8-4-4-4-12 格式"""
    if raw_id and "-" not in raw_id and len(raw_id) == 32:
        return f"{raw_id[:8]}-{raw_id[8:12]}-{raw_id[12:16]}-{raw_id[16:20]}-{raw_id[20:]}"
    return raw_id


def _parse_expiry(value: Any) -> Optional[float]:
    if not value:
        return None
    if isinstance(value, (int, float)):
        # 毫秒时间戳
        return value / 1000 if value > 1e12 else float(value)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
    except ValueError:
        logger.warning(f"无法解析令牌过期时间: {value}")
        return None


class AccessTokenProvider:
    """
    访问令牌提供者
    - 配置了静态令牌时直接返回
    - 否则向连接器获取令牌并缓存，过期或被 Notion 拒绝（401）后才重新获取
    - 没有过期时间的令牌一直缓存到被拒绝为止
    """

    def __init__(self, config: Settings, http=requests):
        self.static_token = config.NOTION_ACCESS_TOKEN
        self.connector_url = config.NOTION_CONNECTOR_URL
        self.connector_token = config.NOTION_CONNECTOR_TOKEN
        self.timeout = config.NOTION_TIMEOUT
        self.http = http
        self._token: Optional[str] = None
        self._expires_at: Optional[float] = None
        self._lock = threading.Lock()

    def _is_cached_valid(self) -> bool:
        if not self._token:
            return False
        return self._expires_at is None or self._expires_at > time.time()

    def invalidate(self) -> None:
        """丢弃缓存的令牌，下次调用时重新获取"""
        with self._lock:
            self._token = None
            self._expires_at = None

    def get_token(self) -> str:
        if self.static_token:
            return self.static_token

        with self._lock:
            if not self._is_cached_valid():
                self._token, self._expires_at = self._fetch_token()
            return self._token

    def _fetch_token(self):
        if not self.connector_url or not self.connector_token:
            raise NotionAPIError(401, "未配置 Notion 访问令牌")

        logger.info("从连接器获取 Notion 访问令牌")
        try:
            response = self.http.get(
                self.connector_url,
                headers={
                    "Accept": "application/json",
                    "X_REPLIT_TOKEN": self.connector_token,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"获取 Notion 访问令牌失败: {e}")
            raise NotionAPIError(401, f"获取访问令牌失败: {e}") from e

        items = data.get("items") or []
        connection = (items[0] if items else {}).get("settings") or {}
        token = connection.get("access_token") or (
            ((connection.get("oauth") or {}).get("credentials") or {}).get("access_token")
        )
        if not token:
            raise NotionAPIError(401, "Notion 未连接")

        return token, _parse_expiry(connection.get("expires_at"))


class NotionGateway:
    """封装 Notion 数据库的查询、读取、创建与更新"""

    def __init__(self, config: Settings, token_provider: AccessTokenProvider, http=requests):
        self.base_url = config.NOTION_API_BASE.rstrip("/")
        self.notion_version = config.NOTION_VERSION
        self.timeout = config.NOTION_TIMEOUT
        self.token_provider = token_provider
        self.http = http

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token_provider.get_token()}",
            "Content-Type": "application/json",
            "Notion-Version": self.notion_version,
        }

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"Notion 请求: {method} {url}")
        try:
            response = self.http.request(
                method,
                url,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Notion 请求超时: {method} {url}")
            raise NotionAPIError(0, "请求超时") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Notion 请求失败: {method} {url}: {e}")
            raise NotionAPIError(0, str(e)) from e

        if not response.ok:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.error(f"Notion API 返回错误 {response.status_code}: {message}")
            if response.status_code == 401:
                # 令牌已失效，下一次请求重新获取
                self.token_provider.invalidate()
            raise NotionAPIError(response.status_code, message)

        return response.json()

    def query_database(self, database_id: str, filter: Optional[Dict[str, Any]] = None,
                       sorts: Optional[List[Dict[str, Any]]] = None,
                       page_size: Optional[int] = None) -> List[Dict[str, Any]]:
        """查询数据库，返回页面列表"""
        payload: Dict[str, Any] = {}
        if filter:
            payload["filter"] = filter
        if sorts:
            payload["sorts"] = sorts
        if page_size:
            payload["page_size"] = page_size

        data = self._request("POST", f"databases/{format_notion_id(database_id)}/query", payload)
        results = data.get("results", [])
        # 不翻页；小于上限的 page_size 是调用方有意截断
        if data.get("has_more") and (not page_size or page_size >= NOTION_MAX_PAGE_SIZE):
            logger.warning(f"数据库 {database_id} 的查询结果超过 {len(results)} 条，只返回第一页")
        return results

    def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        return self._request("GET", f"pages/{page_id}")

    def create_page(self, database_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            "parent": {"database_id": format_notion_id(database_id)},
            "properties": properties,
        }
        return self._request("POST", "pages", payload)

    def update_page(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"pages/{page_id}", {"properties": properties})

    def check_connection(self) -> bool:
        """检查 Notion 连接是否正常"""
        try:
            self._request("GET", "users/me")
            return True
        except NotionAPIError as e:
            logger.error(f"Notion 连接检查失败: {e}")
            return False
