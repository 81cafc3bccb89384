#!/usr/bin/env python3
"""
用户服务模块
处理学生登录校验和教师列表
"""

import logging
from typing import List, Optional

from app.context import AppContext
from app.models.student import StudentRecord
from app.models.teacher import TeacherRecord

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, context: AppContext):
        self.student_repo = context.students
        self.teacher_repo = context.teachers

    def login(self, student_id: str, password: str) -> Optional[StudentRecord]:
        """
        学生登录
        - 学生ID和密码与名册完全一致时返回学生
        - 否则返回 None
        """
        try:
            student = self.student_repo.authenticate(student_id, password)
        except Exception as e:
            logger.error(f"学生登录查询失败: {e}")
            raise

        if student:
            logger.info(f"学生登录成功: {student_id}")
        else:
            logger.info(f"学生登录失败，ID或密码错误: {student_id}")
        return student

    def list_teachers(self) -> List[TeacherRecord]:
        """教师端筛选用的教师列表"""
        teachers = self.teacher_repo.list_teachers()
        logger.info(f"获取教师列表: {len(teachers)} 名")
        return teachers
