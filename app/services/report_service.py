#!/usr/bin/env python3
"""
月度报告服务模块
生成（汇总 -> AI总评 -> 保存）、读取渲染以及报告链接查询
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from urllib.parse import urlencode

from starlette.concurrency import run_in_threadpool

from app.context import AppContext
from app.models.monthly_report import MonthlyReport
from app.models.student import StudentRecord
from app.services.exceptions import NoProgressDataError, StudentNotFoundError
from app.services.statistics_service import aggregate_month, build_comment_digest
from app.services.summary_service import SUMMARY_UNAVAILABLE
from app.utils.helpers import parse_month, previous_month
from app.utils.report_renderer import render_monthly_report

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    month: str
    reports: List[MonthlyReport] = field(default_factory=list)
    skipped: int = 0
    failed: int = 0

    @property
    def url(self) -> str:
        return self.reports[0].report_url if self.reports else ""

    @property
    def message(self) -> str:
        return (f"{self.month} 리포트 생성을 완료했습니다. "
                f"(성공: {len(self.reports)}건, 데이터 없음: {self.skipped}건, 실패: {self.failed}건)")


class ReportService:
    def __init__(self, context: AppContext):
        self.settings = context.settings
        self.summarizer = context.summarizer
        self.template = context.template
        self.cutoffs = context.cutoffs
        self.student_repo = context.students
        self.progress_repo = context.progress
        self.report_repo = context.reports

    def build_report_url(self, student_page_id: str, month: str) -> str:
        query = urlencode({"studentId": student_page_id, "month": month})
        return f"{self.settings.DOMAIN_URL.rstrip('/')}/monthly-report?{query}"

    async def _generate_for_student(self, student: StudentRecord, month: str) -> Optional[MonthlyReport]:
        """单个学生：没有学习记录时返回 None"""
        first_day, last_day = parse_month(month)
        # Notion 请求是同步阻塞的，放到线程池中执行
        entries = await run_in_threadpool(self.progress_repo.list_for_month, student.name, first_day, last_day)
        if not entries:
            logger.info(f"{student.name} {month} 没有学习记录，跳过")
            return None

        statistics = aggregate_month(entries)
        summary = await self.summarizer.summarize(
            student.name, month, statistics, build_comment_digest(entries)
        )
        report = MonthlyReport(
            student_page_id=student.page_id,
            student_name=student.name,
            month=month,
            first_day=first_day,
            last_day=last_day,
            statistics=statistics,
            ai_summary=summary,
            report_url=self.build_report_url(student.page_id, month),
        )
        await run_in_threadpool(self.report_repo.upsert, report)
        return report

    async def generate(self, student_name: str, month: str) -> GenerationResult:
        """
        为同名的所有学生生成月度报告

        Args:
            student_name: 学生姓名
            month: YYYY-MM

        Returns:
            GenerationResult: 生成结果

        Raises:
            ValueError: 月份格式错误
            StudentNotFoundError: 没有该姓名的学生
            NoProgressDataError: 所有学生当月都没有学习记录
        """
        parse_month(month)
        students = await run_in_threadpool(self.student_repo.find_by_name, student_name)
        if not students:
            raise StudentNotFoundError(f"학생을 찾을 수 없습니다: {student_name}")

        logger.info(f"开始生成月度报告: {student_name} {month}, 共 {len(students)} 名学生")
        result = GenerationResult(month=month)
        last_error: Optional[Exception] = None

        for student in students:
            try:
                report = await self._generate_for_student(student, month)
            except Exception as e:
                logger.error(f"{student.name} {month} 月度报告生成失败: {e}")
                result.failed += 1
                last_error = e
                continue
            if report is None:
                result.skipped += 1
            else:
                result.reports.append(report)

        if not result.reports:
            if last_error is not None:
                raise last_error
            raise NoProgressDataError(f"{student_name} 학생의 {month} 학습 데이터가 없습니다.")

        logger.info(f"月度报告生成完成: {result.message}")
        return result

    def get_report_document(self, student_page_id: str, month: str) -> str:
        """
        读取并渲染月度报告
        统计数据每次根据学习记录重新计算，AI总评取自已保存的报告
        """
        first_day, last_day = parse_month(month)
        student = self.student_repo.get_by_page_id(student_page_id)
        if not student:
            raise StudentNotFoundError(f"학생을 찾을 수 없습니다: {student_page_id}")

        stored = None
        if self.settings.MONTHLY_REPORT_DB_ID:
            stored = self.report_repo.find(student_page_id, month, student.name)
        entries = self.progress_repo.list_for_month(student.name, first_day, last_day)

        if entries:
            report = MonthlyReport(
                student_page_id=student_page_id,
                student_name=student.name,
                month=month,
                first_day=first_day,
                last_day=last_day,
                statistics=aggregate_month(entries),
                ai_summary=stored.ai_summary if stored and stored.ai_summary else SUMMARY_UNAVAILABLE,
            )
        elif stored:
            report = stored
            report.student_name = student.name
        else:
            raise NoProgressDataError(f"{student.name} 학생의 {month} 학습 데이터가 없습니다.")

        return render_monthly_report(self.template, report, self.cutoffs)

    def get_report_url(self, student_name: str, on_date: date) -> Optional[str]:
        """给定日期上一个月的报告链接，没有时返回 None"""
        month = previous_month(on_date)
        students = self.student_repo.find_by_name(student_name)
        if not students:
            raise StudentNotFoundError(f"학생을 찾을 수 없습니다: {student_name}")

        for student in students:
            report = self.report_repo.find(student.page_id, month, student.name)
            if report and report.report_url:
                return report.report_url
        return None
