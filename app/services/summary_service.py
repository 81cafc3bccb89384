import logging
from typing import Optional, Tuple

from app.models.monthly_report import MonthlyStatistics
from app.utils.llm_client import LLMClient

logger = logging.getLogger(__name__)

SUMMARY_UNAVAILABLE = "AI 요약 기능을 사용할 수 없습니다."

HANGUL_FIRST = 0xAC00
HANGUL_LAST = 0xD7A3

SUMMARY_PROMPT_TEMPLATE = """
너는 '리디튜드' 학원의 선생님이야. 지금부터 너는 학생의 학부모님께 보낼 월간 리포트 총평을 "직접" 작성해야 해.

[AI의 역할 및 톤]
1. 가장 중요: 너는 선생님 본인이기 때문에, "안녕하세요, OOO 컨설턴트입니다" 혹은 "xxx쌤 입니다"라고 너 자신을 소개하는 문장을 절대로 쓰지 마.
2. 마치 선생님이 학부모님께 카톡을 보내는 것처럼, "안녕하세요. {short_name}의 {month_number}월 리포트 보내드립니다."처럼 자연스럽고 친근하게 첫인사를 시작해 줘.
3. 전체적인 톤은 따뜻하고, 친근하며, 학생을 격려해야 하지만, 동시에 데이터에 기반한 전문가의 통찰력이 느껴져야 해.
4. `~입니다.`와 `~요.`를 적절히 섞어서 부드럽지만 격식 있는 어투를 사용해 줘.
5. 학생을 지칭할 때 '{student_name} 학생' 대신 '{short_name}{topic_particle}', '{short_name}{subject_particle}'처럼 '{short_name}'(짧은이름)을 자연스럽게 불러주세요.
6. 한국어 이름을 쓸 때 뒤의 조사를 꼭 이름의 발음과 어울리는 것으로 올바르게 사용해 주세요. (EX: 환호이가(X) 환호가(O))

[내용 작성 지침]
1. [데이터] 아래 제공되는 [월간 통계]와 [일일 코멘트]를 절대로 나열하지 말고, 자연스럽게 문장 속에 녹여내 줘.
2. [정량 평가] 부정적인 수치도 숨기지 말고 정확히 언급하되, "시급합니다" 같은 차가운 표현 대신 "다음 달엔 이 부분을 꼭 함께 챙겨보고 싶어요"처럼 따뜻한 권유형으로 표현해 줘.
3. [정성 평가] 월간 통계 부분에서 긍정적인 부분이 있다면, 그것을 먼저 칭찬하면서 코멘트를 시작해 줘.
4. [개선점] 가장 아쉬웠던 점을 명확히 짚어주고, "매일 꾸준히 숙제하는 습관"처럼 구체적이고 쉬운 개선안을 제시해 줘.
5. [마무리] 마지막은 항상 다음 달을 응원하는 격려의 메시지나, 학부모님께 드리는 감사 인사로 따뜻하게 마무리해 줘.
6. [강조 금지] 절대로 마크다운(`**` or `*`)을 사용하여 텍스트를 강조하지 마세요.

[월간 통계]
- 숙제 수행율(평균): {completion_rate_avg}%
- 어휘 점수(평균): {vocab_score_avg}점
- 문법 점수(평균): {grammar_score_avg}점
- 읽은 책: {total_books}권 ({book_list})
- 독해 통과율: {reading_pass_rate}%

[일일 코멘트 모음]
{comments}
"""


def short_name(student_name: str) -> str:
    """'Test ' 前缀去掉；三个字且无空格的韩文名去掉姓氏"""
    if student_name.startswith("Test "):
        return student_name[5:]
    if len(student_name) == 3 and " " not in student_name:
        return student_name[1:]
    return student_name


def name_particles(name: str) -> Tuple[str, str]:
    """根据最后一个韩文音节有无收音选择助词 (이는, 이가) / (는, 가)"""
    if name:
        code = ord(name[-1])
        if HANGUL_FIRST <= code <= HANGUL_LAST and (code - HANGUL_FIRST) % 28 == 0:
            return "는", "가"
    return "이는", "이가"


def build_summary_prompt(student_name: str, month: str, stats: MonthlyStatistics, comments: str) -> str:
    name = short_name(student_name)
    topic_particle, subject_particle = name_particles(name)
    return SUMMARY_PROMPT_TEMPLATE.format(
        short_name=name,
        student_name=student_name,
        month_number=int(month[5:7]),
        topic_particle=topic_particle,
        subject_particle=subject_particle,
        completion_rate_avg=stats.completion_rate_avg,
        vocab_score_avg=stats.vocab_score_avg,
        grammar_score_avg=stats.grammar_score_avg,
        total_books=stats.total_books,
        book_list=stats.book_list_text,
        reading_pass_rate=stats.reading_pass_rate,
        comments=comments,
    )


class ReportSummarizer:
    """月度报告AI总评，失败时返回固定占位文本，不影响报告生成"""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client

    @property
    def available(self) -> bool:
        return self.llm_client is not None

    async def summarize(self, student_name: str, month: str, stats: MonthlyStatistics, comments: str) -> str:
        if not self.llm_client:
            return SUMMARY_UNAVAILABLE

        prompt = build_summary_prompt(student_name, month, stats, comments)
        try:
            summary = await self.llm_client.generate_response(
                [{"role": "user", "content": prompt}],
                temperature=0.7
            )
        except Exception as e:
            logger.error(f"{student_name} {month} AI总评生成失败: {e}")
            return SUMMARY_UNAVAILABLE

        if not summary or not summary.strip():
            logger.warning(f"{student_name} {month} AI总评为空")
            return SUMMARY_UNAVAILABLE

        logger.info(f"{student_name} {month} AI总评生成成功")
        return summary.strip()
