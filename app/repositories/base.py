from typing import Any, Dict, List, Optional

from app.config.settings import ConfigurationError
from app.utils.notion_client import NotionGateway


class BaseRepository:
    """基础Repository类，封装对单个 Notion 数据库的通用查询"""

    def __init__(self, gateway: NotionGateway, database_id: Optional[str]):
        self.gateway = gateway
        self.database_id = database_id

    def query(self, filter: Optional[Dict[str, Any]] = None,
              sorts: Optional[List[Dict[str, Any]]] = None,
              page_size: Optional[int] = None) -> List[Dict[str, Any]]:
        """查询页面列表"""
        if not self.database_id:
            raise ConfigurationError(f"{self.__class__.__name__} 未配置数据库ID")
        return self.gateway.query_database(self.database_id, filter=filter, sorts=sorts, page_size=page_size)

    def first(self, filter: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """根据条件获取第一条记录"""
        results = self.query(filter=filter, page_size=1)
        return results[0] if results else None

    def create(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        """创建新页面"""
        if not self.database_id:
            raise ConfigurationError(f"{self.__class__.__name__} 未配置数据库ID")
        return self.gateway.create_page(self.database_id, properties)

    def update(self, page_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """更新页面属性"""
        return self.gateway.update_page(page_id, properties)

    def get_by_id(self, page_id: str) -> Dict[str, Any]:
        """根据页面ID获取页面"""
        return self.gateway.retrieve_page(page_id)
