class StudentNotFoundError(LookupError):
    """学生不存在"""


class NoProgressDataError(LookupError):
    """指定月份没有学习记录，也没有已保存的报告"""
