from dataclasses import dataclass


"""
学生模型
学生名册数据库中的一页：页面ID、登录用学生ID、姓名。由外部系统在入学时创建，本服务只读。
"""


@dataclass(frozen=True)
class StudentRecord:
    page_id: str
    student_id: str
    name: str
