from dataclasses import dataclass


"""
教师模型
教师名册数据库中权限为 teacher 或 manager 的一页，用于作业现况按负责老师筛选。
"""


@dataclass(frozen=True)
class TeacherRecord:
    id: str
    name: str
